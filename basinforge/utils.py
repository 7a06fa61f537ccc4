#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Shared helpers: the state codec, node normalisation, random number generator
coercion and small numeric utilities.

A network state with N nodes is an N-bit vector. Bit ``i`` always belongs to
``node_order[i]``; compactly, the state is the unsigned integer
``sum(bits[i] << i)``.
"""


##Imports
from __future__ import annotations
import math
import numpy as np
import random as _py_random
from collections.abc import Sequence
from numpy.random import Generator as _NPGen, RandomState as _NPRandomState, SeedSequence, default_rng

from typing import Union, Optional


__all__ = [
    "encode_state",
    "decode_state",
    "format_state",
    "normalize_nodes",
    "get_node_labels",
    "clamp01",
    "is_finite_number",
    "to_finite_float",
    "get_left_side_of_truth_table",
]


def _coerce_rng(rng : Union[int, _NPGen, _NPRandomState, _py_random.Random, None] = None) -> _NPGen:
    """
    Return a NumPy Generator given a variety of rng-like inputs.

    **Accepts:**

      - None                -> default_rng()
      - int (seed)          -> default_rng(seed)
      - np.random.Generator -> returned as-is
      - np.random.RandomState -> converted via SeedSequence
      - random.Random       -> converted via SeedSequence

    **Raises:**

        - TypeError: for unsupported inputs.
    """
    if rng is None:
        return default_rng()
    if isinstance(rng, _NPGen):
        return rng
    if isinstance(rng, (int, np.integer)):
        return default_rng(int(rng))
    if isinstance(rng, _NPRandomState):
        entropy = rng.randint(0, 2**32, size=4, dtype=np.uint32)
        return default_rng(SeedSequence(entropy))
    if isinstance(rng, _py_random.Random):
        entropy = [rng.getrandbits(32) for _ in range(4)]
        return default_rng(SeedSequence(entropy))
    raise TypeError(f"Unsupported rng type: {type(rng)!r}")


## State codec

def encode_state(bits : Sequence) -> int:
    """
    Convert a bit vector into its integer representation.

    **Parameters:**

        - bits (list[int] | np.ndarray[int]): One entry per node, in node
          order. Any truthy entry counts as 1.

    **Returns:**

        - int: The state ``sum(bits[i] << i)``, i.e. bit ``i`` belongs to
          node ``i``.
    """
    value = 0
    for index, bit in enumerate(bits):
        if bit:
            value |= 1 << index
    return value


def decode_state(value : int, out : Union[int, np.ndarray, list]) -> np.ndarray:
    """
    Convert an integer state back into a bit vector.

    **Parameters:**

        - value (int): Encoded state.
        - out (int | np.ndarray | list): Either the number of bits N, in which
          case a new uint8 array of length N is allocated, or a preallocated
          buffer of length N that is overwritten in place.

    **Returns:**

        - np.ndarray[uint8] | list: The bit vector (the buffer itself if one
          was passed).
    """
    if isinstance(out, (int, np.integer)):
        out = np.zeros(int(out), dtype=np.uint8)
    for index in range(len(out)):
        out[index] = (value >> index) & 1
    return out


def format_state(value : int, node_order : Sequence[str],
                 labels : Optional[dict] = None) -> dict:
    """
    Produce a human-readable snapshot of an encoded state.

    **Parameters:**

        - value (int): Encoded state.
        - node_order (list[str]): Node ids; bit ``i`` belongs to
          ``node_order[i]``.
        - labels (dict[str:str], optional): Display label per node id.

    **Returns:**

        - dict[str:Variant]: A dictionary containing:

            - binary (str): The integer written most-significant bit first,
              padded to ``len(node_order)`` characters. The right-most
              character is ``node_order[0]``.
            - values (dict[str:int]): Bit per node id. Nodes whose label
              differs from their id also appear under the label, carrying the
              same bit.
    """
    labels = labels or {}
    values = {}
    for index, node_id in enumerate(node_order):
        bit = (value >> index) & 1
        values[node_id] = bit
        label = labels.get(node_id)
        if label and label != node_id:
            values[label] = bit
    binary = format(value, 'b').zfill(len(node_order)) if node_order else ''
    return {'binary': binary, 'values': values}


## Node handling

def normalize_nodes(nodes : Optional[Sequence]) -> list:
    """
    Validate a node list and return it as a list of ``{'id', 'label'}`` dicts.

    A bare string is accepted in place of ``{'id': s}``. Labels are stripped;
    empty labels become None. The caller's list is not modified.

    **Raises:**

        - ValueError: If ``nodes`` is None, a node has an empty id or two
          nodes share an id.
        - TypeError: If ``nodes`` is not a sequence or a node is neither a
          string nor a mapping with an ``'id'`` key.
    """
    if nodes is None:
        raise ValueError("A node list is required for analysis.")
    if not isinstance(nodes, Sequence) or isinstance(nodes, (str, bytes)):
        raise TypeError("nodes must be a sequence of node dicts or node ids")

    normalized = []
    seen = set()
    for node in nodes:
        if isinstance(node, str):
            node_id, label = node, None
        elif hasattr(node, 'get') and 'id' in node:
            node_id, label = node['id'], node.get('label')
        else:
            raise TypeError(f"Invalid node {node!r}: expected a string or a mapping with an 'id'")
        node_id = str(node_id)
        if not node_id.strip():
            raise ValueError("Node ids must be non-empty strings.")
        if node_id in seen:
            raise ValueError(f"Duplicate node id: {node_id}")
        seen.add(node_id)
        if label is not None:
            label = str(label).strip() or None
        normalized.append({'id': node_id, 'label': label})
    return normalized


def get_node_labels(nodes : list) -> dict:
    """Map each node id to its display label, falling back to the id."""
    return {node['id']: node['label'] or node['id'] for node in nodes}


## Numerics

def clamp01(value : float) -> float:
    """Clamp a number to [0, 1]; NaN maps to 0."""
    value = float(value)
    if math.isnan(value) or value < 0:
        return 0.0
    if value > 1:
        return 1.0
    return value


def is_finite_number(value) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def to_finite_float(value, default : float = 0.0) -> float:
    """Return ``value`` as a float, or ``default`` if it is missing or not finite."""
    if value is None or not is_finite_number(value):
        return default
    return float(value)


def get_left_side_of_truth_table(N : int) -> np.ndarray:
    """
    Return all 2^N input combinations of N variables as rows of a uint8
    matrix, in lexicographic order (the first column is the most significant
    bit).
    """
    vals = np.arange(2**N, dtype=np.uint64)[:, None]
    masks = (np.uint64(1) << np.arange(N-1, -1, -1, dtype=np.uint64))[None]
    return ((vals & masks) != 0).astype(np.uint8)
