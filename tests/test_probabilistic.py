#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import math

import numpy as np
import pytest

from basinforge.probabilistic import perform_probabilistic_analysis, safe_logistic


# ------------------------------------------------------------
# 1 Logistic response
# ------------------------------------------------------------

def test_safe_logistic_midpoint_and_saturation():
    assert safe_logistic(0.0, 0.25) == 0.5
    assert safe_logistic(100.0, 0.25) == 1.0
    assert safe_logistic(-100.0, 0.25) == 0.0
    assert math.isclose(safe_logistic(0.25, 0.25), 1 / (1 + math.exp(-1)))


def test_safe_logistic_with_zero_noise_is_a_step():
    assert safe_logistic(1e-3, 0.0) == 1.0
    assert safe_logistic(-1e-3, 0.0) == 0.0


def test_safe_logistic_is_vectorised():
    out = safe_logistic(np.array([-1.0, 0.0, 1.0]), 1.0)
    assert out.shape == (3,)
    assert np.allclose(out, [1 / (1 + math.e), 0.5, 1 / (1 + math.exp(-1))])


# ------------------------------------------------------------
# 2 Iteration
# ------------------------------------------------------------

def test_unstimulated_nodes_decay():
    result = perform_probabilistic_analysis(["A"], [])
    assert result["converged"] is True
    assert result["probabilities"]["A"] < 1e-3
    assert math.isclose(result["potentialEnergies"]["A"], -math.log(result["probabilities"]["A"]))
    assert result["warnings"] == []


def test_strong_input_drives_probability_to_one():
    result = perform_probabilistic_analysis(["A"], [], biases={"A": 5.0})
    assert result["converged"] is True
    assert result["probabilities"]["A"] > 0.99
    assert result["potentialEnergies"]["A"] < 0.01


def test_edges_propagate_activity():
    nodes = ["A", "B"]
    edges = [{"source": "A", "target": "B", "weight": 4.0}]
    result = perform_probabilistic_analysis(nodes, edges, basal_activity={"A": 2.0})
    assert result["nodeOrder"] == nodes
    assert result["probabilities"]["A"] > 0.99
    assert result["probabilities"]["B"] > 0.99


def test_inhibition_suppresses_target():
    edges = [{"source": "A", "target": "B", "weight": -4.0}]
    result = perform_probabilistic_analysis(["A", "B"], edges, biases={"A": 2.0})
    assert result["probabilities"]["B"] < 0.01


def test_no_degradation_converges_after_one_sweep():
    result = perform_probabilistic_analysis(["A", "B"], [], self_degradation=0.0,
                                            initial_probabilities={"A": 0.2})
    assert result["converged"] is True
    assert result["iterations"] == 1
    assert result["probabilities"] == {"A": 0.2, "B": 0.5}


def test_non_convergence_is_a_warning():
    result = perform_probabilistic_analysis(["A"], [], max_iterations=1)
    assert result["converged"] is False
    assert result["iterations"] == 1
    assert len(result["warnings"]) == 1
    assert "maximum iteration count (1)" in result["warnings"][0]
    assert math.isclose(result["probabilities"]["A"], 0.45)


@pytest.mark.parametrize("max_iterations", [0, -3, 0.5])
def test_at_least_one_iteration(max_iterations):
    result = perform_probabilistic_analysis(["A"], [], max_iterations=max_iterations)
    assert result["iterations"] == 1


def test_initial_probabilities_are_clamped():
    result = perform_probabilistic_analysis(
        ["A", "B", "C"], [], self_degradation=0.0,
        initial_probability=2.0, initial_probabilities={"A": float("nan"), "B": -1},
    )
    assert result["probabilities"] == {"A": 0.0, "B": 0.0, "C": 1.0}
    assert math.isclose(result["potentialEnergies"]["A"], -math.log(1e-9))
    assert result["potentialEnergies"]["C"] == 0.0


def test_probabilities_stay_in_unit_interval():
    nodes = ["A", "B", "C"]
    edges = [
        {"source": "A", "target": "B", "weight": 3},
        {"source": "B", "target": "C", "weight": -2},
        {"source": "C", "target": "A", "weight": 1.5},
    ]
    result = perform_probabilistic_analysis(nodes, edges, noise=0.1, self_degradation=0.5)
    assert all(0.0 <= p <= 1.0 for p in result["probabilities"].values())
    assert all(e >= 0.0 for e in result["potentialEnergies"].values())


def test_non_finite_bias_is_reported():
    result = perform_probabilistic_analysis(["A"], [], biases={"A": float("inf")}, max_iterations=1000)
    assert "Non-finite bias for A treated as 0." in result["warnings"]


def test_empty_node_list_returns_empty_result():
    result = perform_probabilistic_analysis([], [])
    assert result["probabilities"] == {}
    assert result["converged"] is True
    assert result["warnings"] == ["No nodes supplied; analysis skipped."]
