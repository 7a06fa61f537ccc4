#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import numpy as np
import pytest

from basinforge.weighted_network import edges_to_matrix
from basinforge.wiring_diagram import WiringDiagram


def test_degrees_and_source_nodes():
    W = WiringDiagram([[], [0], [0, 1]], ["A", "B", "C"])
    assert W.indegrees.tolist() == [0, 1, 2]
    assert W.outdegrees.tolist() == [2, 1, 0]
    assert W.get_source_nodes() == {0: True, 1: False, 2: False}
    assert W.get_source_nodes(AS_DICT=False).tolist() == [0]
    assert list(W[2]) == [0, 1]


def test_default_variable_names():
    W = WiringDiagram([[1], [0]])
    assert list(W.variables) == ["x0", "x1"]
    assert W.weights is None


def test_from_edges_keeps_last_weight_and_skips_unknown_nodes():
    edges = [
        {"source": "A", "target": "B", "weight": 2},
        {"source": "A", "target": "B", "weight": -1},
        {"source": "C", "target": "B"},
        {"source": "Z", "target": "A"},
    ]
    W = WiringDiagram.from_edges(["A", "B", "C"], edges)
    assert [list(regs) for regs in W.I] == [[], [0, 2], []]
    assert W.weights[1].tolist() == [-1.0, 1.0]


def test_to_DiGraph():
    W = WiringDiagram.from_edges(["A", "B"], [{"source": "A", "target": "B", "weight": 0.5}])
    G = W.to_DiGraph()
    assert set(G.nodes) == {"A", "B"}
    assert list(G.edges(data=True)) == [("A", "B", {"weight": 0.5})]
    G = W.to_DiGraph(USE_VARIABLE_NAMES=False)
    assert list(G.edges) == [(0, 1)]


def test_strongly_connected_components():
    # 0 <-> 1 form a cycle, 2 is fed by it, 3 is isolated
    W = WiringDiagram([[1], [0], [1], []])
    components = sorted(sorted(c) for c in W.get_strongly_connected_components())
    assert components == [[0, 1], [2], [3]]


@pytest.mark.parametrize("args, error", [
    (("not a list",), TypeError),
    (([[0]], ["A", "B"]), ValueError),
    (([[0]], ["A"], [[1.0, 2.0]]), ValueError),
    (([[0]], ["A"], [[1.0], [2.0]]), ValueError),
])
def test_invalid_input(args, error):
    with pytest.raises(error):
        WiringDiagram(*args)


def test_from_edges_matches_weight_matrix():
    nodes = ["A", "B", "C"]
    edges = [
        {"source": "A", "target": "C", "weight": 3},
        {"source": "B", "target": "C", "weight": 0},
        {"source": "C", "target": "C", "weight": 2},
        {"source": "C", "target": "C", "weight": -0.5},
        {"source": "C", "target": "A"},
    ]
    W = WiringDiagram.from_edges(nodes, edges)
    matrix = np.array(edges_to_matrix(nodes, edges)["matrix"])
    # the zero-weight B -> C edge is not a regulation
    assert [list(regs) for regs in W.I] == [[2], [], [0, 2]]
    for i, regs in enumerate(W.I):
        assert W.weights[i].tolist() == matrix[i, regs].tolist()
    assert W.weights[2].tolist() == [3.0, -0.5]


def test_from_edges_without_nodes():
    W = WiringDiagram.from_edges([], [{"source": "A", "target": "B"}])
    assert W.N == 0
    assert W.I == []
