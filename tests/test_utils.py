#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import math

import numpy as np
import pytest

from basinforge.utils import (
    encode_state,
    decode_state,
    format_state,
    normalize_nodes,
    get_node_labels,
    clamp01,
    is_finite_number,
    to_finite_float,
    get_left_side_of_truth_table,
    _coerce_rng,
)


# ------------------------------------------------------------
# State codec
# ------------------------------------------------------------

def test_encode_state_bit_i_belongs_to_node_i():
    assert encode_state([1, 0, 1]) == 5
    assert encode_state([0, 1]) == 2
    assert encode_state([]) == 0


def test_encode_state_accepts_truthy_entries():
    assert encode_state(np.array([True, False, True])) == 5


def test_decode_state_allocates_uint8_vector():
    bits = decode_state(6, 3)
    assert bits.dtype == np.uint8
    assert bits.tolist() == [0, 1, 1]


def test_decode_state_writes_into_buffer():
    buffer = [9, 9, 9, 9]
    out = decode_state(5, buffer)
    assert out is buffer
    assert buffer == [1, 0, 1, 0]


@pytest.mark.parametrize("N", [1, 4, 9])
def test_decode_inverts_encode(N):
    for value in range(2**N):
        assert encode_state(decode_state(value, N)) == value


def test_format_state_binary_is_msb_first():
    snapshot = format_state(1, ["A", "B", "C"])
    assert snapshot["binary"] == "001"
    assert snapshot["values"] == {"A": 1, "B": 0, "C": 0}


def test_format_state_adds_label_alias():
    snapshot = format_state(2, ["n0", "n1"], {"n0": "n0", "n1": "p53"})
    assert snapshot["values"] == {"n0": 0, "n1": 1, "p53": 1}


def test_format_state_without_nodes():
    assert format_state(0, []) == {"binary": "", "values": {}}


# ------------------------------------------------------------
# Nodes
# ------------------------------------------------------------

def test_normalize_nodes_accepts_strings_and_dicts():
    nodes = normalize_nodes(["A", {"id": "B", "label": " Beta "}, {"id": "C", "label": "  "}])
    assert nodes == [
        {"id": "A", "label": None},
        {"id": "B", "label": "Beta"},
        {"id": "C", "label": None},
    ]
    assert get_node_labels(nodes) == {"A": "A", "B": "Beta", "C": "C"}


def test_normalize_nodes_does_not_modify_input():
    nodes = [{"id": "A", "label": " x "}]
    normalize_nodes(nodes)
    assert nodes == [{"id": "A", "label": " x "}]


def test_normalize_nodes_rejects_none():
    with pytest.raises(ValueError):
        normalize_nodes(None)


@pytest.mark.parametrize("nodes", [["A", "A"], [{"id": "A"}, "A"], [" "]])
def test_normalize_nodes_rejects_bad_ids(nodes):
    with pytest.raises(ValueError):
        normalize_nodes(nodes)


@pytest.mark.parametrize("nodes", ["AB", 3, [3], [{"label": "x"}]])
def test_normalize_nodes_rejects_bad_types(nodes):
    with pytest.raises(TypeError):
        normalize_nodes(nodes)


# ------------------------------------------------------------
# Numerics
# ------------------------------------------------------------

@pytest.mark.parametrize("value, expected", [(-1, 0.0), (0.3, 0.3), (2, 1.0), (float("nan"), 0.0)])
def test_clamp01(value, expected):
    assert clamp01(value) == expected


def test_finite_number_helpers():
    assert is_finite_number(1.5)
    assert is_finite_number("2")
    assert not is_finite_number(float("inf"))
    assert not is_finite_number(None)
    assert not is_finite_number(True)
    assert to_finite_float(float("nan"), 3.0) == 3.0
    assert to_finite_float(None) == 0.0
    assert math.isclose(to_finite_float("0.25"), 0.25)


def test_left_side_of_truth_table_is_lexicographic():
    assert get_left_side_of_truth_table(2).tolist() == [[0, 0], [0, 1], [1, 0], [1, 1]]
    assert get_left_side_of_truth_table(0).shape == (1, 0)


def test_coerce_rng_is_reproducible_from_seed():
    a = _coerce_rng(7).integers(0, 1000, size=5)
    b = _coerce_rng(7).integers(0, 1000, size=5)
    assert np.array_equal(a, b)
    with pytest.raises(TypeError):
        _coerce_rng("seed")
