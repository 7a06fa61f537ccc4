#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Weighted threshold networks.

In a weighted network every edge ``source -> target`` carries a real weight.
The next value of node ``j`` is obtained by comparing its weighted input

    input_j = bias_j + sum_i W[j, i] * x_i

with the threshold ``threshold_multiplier * max(sum_i |W[j, i]|, 1)``:
above the threshold the node turns on, below it turns off, and an exact tie
is settled by the tie behaviour (``'zero-as-zero'``, ``'zero-as-one'`` or
``'hold'``).

Weight matrices follow the convention row = target, column = source.
"""

import itertools
import logging
import math

import numpy as np

from collections.abc import Mapping, Sequence
from typing import Optional, Union

try:
    import basinforge.utils as utils
    import basinforge.config as config
    from basinforge.attractors import get_attractors_synchronous, build_analysis_result, empty_analysis_result, check_state_caps
    from basinforge.wiring_diagram import WiringDiagram
except ModuleNotFoundError:
    import utils
    import config
    from attractors import get_attractors_synchronous, build_analysis_result, empty_analysis_result, check_state_caps
    from wiring_diagram import WiringDiagram


__all__ = [
    "edges_to_matrix",
    "matrix_to_edges",
    "get_in_degree",
    "compute_threshold",
    "filter_edges",
    "sample_initial_states",
    "WeightedNetwork",
    "perform_weighted_analysis",
    "perform_weighted_matrix_analysis",
]

logger = logging.getLogger(__name__)


def check_tie_behavior(tie_behavior : str) -> str:
    if tie_behavior not in config.TIE_BEHAVIORS:
        raise ValueError(f"tie_behavior must be one of {config.TIE_BEHAVIORS}, got {tie_behavior!r}")
    return tie_behavior


## Weight matrices

def edges_to_matrix(node_order : Sequence[str], edges : Sequence,
                    biases : Optional[dict] = None,
                    threshold_multiplier : float = config.MATRIX_DEFAULT_THRESHOLD_MULTIPLIER,
                    tie_behavior : str = config.MATRIX_DEFAULT_TIE_BEHAVIOR) -> dict:
    """
    Convert an edge list into a weight matrix.

    **Parameters:**

        - node_order (list[str]): Node ids; the position is the matrix index.
        - edges (list[dict]): Edges ``{'source', 'target', 'weight'?}``. The
          weight defaults to 1. Edges naming unknown nodes are ignored; for a
          repeated ``source -> target`` pair the last edge wins.
        - biases (dict[str:float], optional): Bias per node id; missing
          nodes get 0.
        - threshold_multiplier (float, optional): Stored as is (default 0.5).
        - tie_behavior (str, optional): Stored as is (default
          ``'zero-as-zero'``).

    **Returns:**

        - dict[str:Variant]: A dictionary containing:

            - nodes (list[str]): Node ids.
            - matrix (list[list[float]]): ``matrix[t][s]`` is the weight of
              ``s -> t``.
            - biases (dict[str:float]): Bias for every node.
            - thresholdMultiplier (float)
            - tieBehavior (str)
    """
    node_order = list(node_order)
    n = len(node_order)
    index_of = {node_id: i for i, node_id in enumerate(node_order)}
    matrix = [[0.0] * n for _ in range(n)]
    for edge in edges or []:
        source = index_of.get(edge.get('source'))
        target = index_of.get(edge.get('target'))
        if source is None or target is None:
            continue
        weight = edge.get('weight')
        matrix[target][source] = 1.0 if weight is None else float(weight)
    biases = biases or {}
    return {
        'nodes': node_order,
        'matrix': matrix,
        'biases': {node_id: float(biases.get(node_id, 0)) for node_id in node_order},
        'thresholdMultiplier': threshold_multiplier,
        'tieBehavior': tie_behavior,
    }


def matrix_to_edges(weight_matrix : dict) -> list:
    """
    Convert a weight matrix back into an edge list: one edge per non-zero
    entry, ordered by target and then by source.
    """
    nodes = weight_matrix['nodes']
    edges = []
    for target, row in enumerate(weight_matrix['matrix']):
        for source, weight in enumerate(row):
            if weight != 0:
                edges.append({'source': nodes[source], 'target': nodes[target], 'weight': weight})
    return edges


def get_in_degree(node_index : int, weight_matrix : dict) -> float:
    """Sum of the absolute incoming weights of a node."""
    return float(sum(abs(w) for w in weight_matrix['matrix'][node_index]))


def compute_threshold(in_degree : float,
                      threshold_multiplier : float = config.MATRIX_DEFAULT_THRESHOLD_MULTIPLIER) -> float:
    return in_degree * threshold_multiplier


def filter_edges(node_order : Sequence[str], edges : Optional[Sequence]) -> tuple:
    """
    Drop edges that cannot be used: non-mappings, edges with an unknown
    endpoint and edges with a non-finite weight.

    **Returns:**

        - tuple[list[dict], list[str]]: The usable edges and one warning per
          dropped edge.
    """
    known = set(node_order)
    usable = []
    warnings = []
    for edge in edges or []:
        if not isinstance(edge, Mapping):
            warnings.append(f"Skipping malformed edge: {edge!r}")
            continue
        source, target = edge.get('source'), edge.get('target')
        if source not in known or target not in known:
            warnings.append(f"Skipping edge with unknown endpoint: {source} -> {target}")
            continue
        weight = edge.get('weight')
        if weight is not None and not utils.is_finite_number(weight):
            warnings.append(f"Skipping edge {source} -> {target} with non-finite weight {weight!r}")
            continue
        usable.append(edge)
    for message in warnings:
        logger.warning(message)
    return usable, warnings


## Initial states

def _states_with_weight(N : int, k : int) -> np.ndarray:
    """All N-bit states with exactly k active nodes, in increasing order."""
    states = [sum(1 << i for i in positions) for positions in itertools.combinations(range(N), k)]
    return np.array(sorted(states), dtype=np.int64)


def _get_stratum_quotas(N : int, count : int, rng : np.random.Generator) -> list:
    sizes = [math.comb(N, k) for k in range(N + 1)]
    total = 2**N
    exact = [count * size / total for size in sizes]
    quotas = [min(size, max(1, int(e))) for size, e in zip(sizes, exact)]

    #hand out what is left by largest fractional part
    remainder = count - sum(quotas)
    by_fraction = sorted(range(N + 1), key=lambda k: exact[k] - int(exact[k]), reverse=True)
    while remainder > 0:
        progressed = False
        for k in by_fraction:
            if remainder == 0:
                break
            if quotas[k] < sizes[k]:
                quotas[k] += 1
                remainder -= 1
                progressed = True
        if not progressed:
            break

    while remainder < 0 and max(quotas) > 1:
        quotas[int(np.argmax(quotas))] -= 1
        remainder += 1

    if remainder < 0:
        #fewer samples than Hamming weights: keep a random subset of strata
        kept = set(rng.choice(N + 1, size=count, replace=False).tolist())
        quotas = [q if k in kept else 0 for k, q in enumerate(quotas)]
    return quotas


def sample_initial_states(N : int, count : int,
                          rng : Union[int, np.random.Generator, None] = None) -> list:
    """
    Draw distinct initial states, stratified by Hamming weight.

    The states are grouped by their number of active nodes k. Each group
    receives a share of ``count`` proportional to its size C(N, k), but at
    least one state, so that rare all-off or all-on like configurations are
    always represented. Groups no larger than their share are enumerated
    completely.

    **Parameters:**

        - N (int): Number of nodes.
        - count (int): Number of states to return (at most 2^N).
        - rng (None, int, np.random.Generator, np.random.RandomState,
          random.Random, optional): Random number generator or seed. If None,
          ``config.DEFAULT_SAMPLING_SEED`` is used so the sample is
          reproducible.

    **Returns:**

        - list[int]: Distinct encoded states, ordered by Hamming weight.
    """
    if N < 0 or count < 0:
        raise ValueError("N and count must be non-negative")
    total = 2**N
    if count >= total:
        return list(range(total))
    if count == 0:
        return []

    rng = utils._coerce_rng(config.DEFAULT_SAMPLING_SEED if rng is None else rng)
    powers_of_two = np.int64(1) << np.arange(N, dtype=np.int64)
    states = []
    for k, quota in enumerate(_get_stratum_quotas(N, count, rng)):
        if quota == 0:
            continue
        size = math.comb(N, k)
        if quota >= size:
            states.extend(_states_with_weight(N, k).tolist())
            continue
        if 2 * quota > size:
            candidates = _states_with_weight(N, k)
            chosen = rng.choice(candidates, size=quota, replace=False)
            states.extend(sorted(chosen.tolist()))
            continue

        chosen = set()
        while len(chosen) < quota:
            batch = quota - len(chosen)
            positions = np.argsort(rng.random((batch, N)), axis=1)[:, :k]
            bits = np.zeros((batch, N), dtype=np.int64)
            np.put_along_axis(bits, positions, 1, axis=1)
            for value in (bits @ powers_of_two).tolist():
                if len(chosen) < quota:
                    chosen.add(value)
        states.extend(sorted(chosen))
    return states


## Networks

class WeightedNetwork(object):
    """
    A synchronous weighted threshold network.

    **Constructor Parameters:**

        - nodes (list[dict | str]): Nodes ``{'id', 'label'?}`` in bit order.
        - W (array-like): N x N weight matrix, row = target, column = source.
          Non-finite entries are replaced by 0 with a warning.
        - biases (dict[str:float] | list[float], optional): Bias per node id,
          or a vector of length N (an empty vector means no biases).
          Non-finite biases count as 0.
        - threshold_multiplier (float, optional): Scales ``max(sum|w|, 1)``
          into the threshold of each node (default 0). Non-finite or negative
          values fall back to the default with a warning.
        - tie_behavior (str, optional): ``'zero-as-zero'``, ``'zero-as-one'``
          or ``'hold'`` (default).

    **Members:**

        - node_order (list[str]), node_labels (dict[str:str]), N (int)
        - W (np.ndarray[float]): Weight matrix.
        - biases (np.ndarray[float]), thresholds (np.ndarray[float])
        - tie_behavior (str)
        - warnings (list[str]): Input problems that were repaired.

    **Raises:**

        - ValueError: If W is not N x N, the bias vector has the wrong length
          or the tie behaviour is unknown.
    """

    def __init__(self, nodes : list, W, biases : Union[dict, Sequence, None] = None,
                 threshold_multiplier : float = config.DEFAULT_THRESHOLD_MULTIPLIER,
                 tie_behavior : str = config.DEFAULT_TIE_BEHAVIOR,
                 warnings : Optional[list] = None):
        self.nodes = utils.normalize_nodes(nodes)
        self.node_order = [node['id'] for node in self.nodes]
        self.node_labels = utils.get_node_labels(self.nodes)
        self.N = len(self.node_order)
        self.tie_behavior = check_tie_behavior(tie_behavior)
        self.warnings = list(warnings or [])

        try:
            W = np.array(W, dtype=float)
        except (TypeError, ValueError):
            raise ValueError("The weight matrix must be a numeric N x N matrix") from None
        if self.N == 0 and W.size == 0:
            W = W.reshape(0, 0)
        if W.shape != (self.N, self.N):
            raise ValueError(f"The weight matrix must be {self.N} x {self.N}, got shape {W.shape}")
        if not np.isfinite(W).all():
            self._warn(f"Replaced {int((~np.isfinite(W)).sum())} non-finite matrix entries by 0.")
            W[~np.isfinite(W)] = 0.0
        self.W = W

        self.biases = self._get_bias_vector(biases)

        if not utils.is_finite_number(threshold_multiplier) or float(threshold_multiplier) < 0:
            self._warn(f"Invalid threshold multiplier {threshold_multiplier!r}; "
                       f"using {config.DEFAULT_THRESHOLD_MULTIPLIER}.")
            threshold_multiplier = config.DEFAULT_THRESHOLD_MULTIPLIER
        self.threshold_multiplier = float(threshold_multiplier)
        in_degrees = np.abs(self.W).sum(axis=1)
        self.thresholds = compute_threshold(np.maximum(in_degrees, 1.0), self.threshold_multiplier)

        # bit i of an encoded state is node i
        self._bit_shifts = np.arange(self.N, dtype=np.int64)
        self._powers_of_two = np.left_shift(np.int64(1), self._bit_shifts)

    def _warn(self, message : str) -> None:
        self.warnings.append(message)
        logger.warning(message)

    def _get_bias_vector(self, biases) -> np.ndarray:
        vector = np.zeros(self.N, dtype=float)
        if biases is None:
            return vector
        if isinstance(biases, Mapping):
            index_of = {node_id: i for i, node_id in enumerate(self.node_order)}
            items = []
            for node_id, value in biases.items():
                if node_id not in index_of:
                    self._warn(f"Bias given for unknown node: {node_id}")
                    continue
                items.append((index_of[node_id], node_id, value))
        else:
            biases = list(biases)
            if len(biases) not in (0, self.N):
                raise ValueError(f"The bias vector must have length 0 or {self.N}, got {len(biases)}")
            items = [(i, self.node_order[i], value) for i, value in enumerate(biases)]
        for index, node_id, value in items:
            if utils.is_finite_number(value):
                vector[index] = float(value)
            else:
                self._warn(f"Non-finite bias for {node_id} treated as 0.")
        return vector

    @classmethod
    def from_edges(cls, nodes : list, edges : Optional[Sequence], **kwargs) -> "WeightedNetwork":
        """
        Build a network from an edge list. Edges with an unknown endpoint or a
        non-finite weight are skipped with a warning; for a repeated
        ``source -> target`` pair the last edge wins.
        """
        normalized = utils.normalize_nodes(nodes)
        node_order = [node['id'] for node in normalized]
        usable, warnings = filter_edges(node_order, edges)
        weight_matrix = edges_to_matrix(node_order, usable)
        return cls(normalized, weight_matrix['matrix'], warnings=warnings, **kwargs)

    def __len__(self):
        return self.N

    def __str__(self):
        return (f"Weighted threshold network of {self.N} nodes with {int(np.count_nonzero(self.W))} edges "
                f"(tie behavior '{self.tie_behavior}')")

    def update_network_synchronously(self, X) -> np.ndarray:
        """
        Perform a synchronous update of the state vector ``X``; every node
        reads the same current state.
        """
        X = np.asarray(X, dtype=np.uint8)
        inputs = self.biases + self.W @ X
        Fx = (inputs > self.thresholds).astype(np.uint8)
        ties = inputs == self.thresholds
        if ties.any():
            if self.tie_behavior == 'hold':
                Fx[ties] = X[ties]
            elif self.tie_behavior == 'zero-as-one':
                Fx[ties] = 1
        return Fx

    def update_state(self, xdec : int) -> int:
        """Synchronous update on encoded states."""
        X = np.right_shift(np.int64(xdec), self._bit_shifts) & 1
        return int(self.update_network_synchronously(X).astype(np.int64) @ self._powers_of_two)

    def get_wiring_diagram(self) -> WiringDiagram:
        """Wiring diagram of the non-zero weights, with the weights attached."""
        I = [np.flatnonzero(row).tolist() for row in self.W]
        weights = [self.W[i, regulators].tolist() for i, regulators in enumerate(I)]
        return WiringDiagram(I, self.node_order, weights)

    def get_weight_matrix(self) -> dict:
        """Return the network as a serialisable weight matrix (see :func:`edges_to_matrix`)."""
        return {
            'nodes': list(self.node_order),
            'matrix': self.W.tolist(),
            'biases': dict(zip(self.node_order, self.biases.tolist())),
            'thresholdMultiplier': self.threshold_multiplier,
            'tieBehavior': self.tie_behavior,
        }

    def get_attractors_synchronous(self, state_cap : int, step_cap : int, rng = None) -> tuple:
        """
        Find attractors and basins of the synchronous dynamics.

        If ``state_cap`` covers the whole state space, every state is used
        as an initial state. Otherwise ``state_cap`` initial states are drawn
        with :func:`sample_initial_states`.

        **Returns:**

            - tuple[dict, str]: The search summary of
              :func:`basinforge.attractors.get_attractors_synchronous` and the
              exploration mode (``'exhaustive'`` or ``'sampled'``).
        """
        if self.N > config.MAX_NODES_WEIGHTED:
            raise ValueError(f"Weighted analysis currently supports up to {config.MAX_NODES_WEIGHTED} nodes "
                             f"(network has {self.N}).")
        state_cap, step_cap = check_state_caps(state_cap, step_cap)
        total_state_space = 2**self.N
        if state_cap >= total_state_space:
            initial_states, exploration_mode = range(total_state_space), 'exhaustive'
        else:
            initial_states, exploration_mode = sample_initial_states(self.N, state_cap, rng), 'sampled'
        return get_attractors_synchronous(self.update_state, initial_states, step_cap), exploration_mode


def _analyse(network : WeightedNetwork, state_cap, step_cap, rng) -> dict:
    state_cap = config.WEIGHTED_DEFAULT_STATE_CAP if state_cap is None else state_cap
    step_cap = config.WEIGHTED_DEFAULT_STEP_CAP if step_cap is None else step_cap
    search, exploration_mode = network.get_attractors_synchronous(state_cap, step_cap, rng)
    state_cap, step_cap = check_state_caps(state_cap, step_cap)
    logger.debug("Weighted analysis of %i nodes: state_cap=%i, step_cap=%i, tie_behavior=%s",
                 network.N, state_cap, step_cap, network.tie_behavior)
    return build_analysis_result(network.node_order, network.node_labels, search, 2**network.N,
                                 state_cap, step_cap, exploration_mode=exploration_mode,
                                 warnings=network.warnings)


def _check_capacity(N : int) -> None:
    if N > config.MAX_NODES_WEIGHTED:
        raise ValueError(f"Weighted analysis currently supports up to {config.MAX_NODES_WEIGHTED} nodes "
                         f"(network has {N}).")


def perform_weighted_analysis(nodes : list, edges : Sequence,
                              state_cap : Optional[int] = None,
                              step_cap : Optional[int] = None,
                              tie_behavior : str = config.DEFAULT_TIE_BEHAVIOR,
                              biases : Optional[dict] = None,
                              threshold_multiplier : float = config.DEFAULT_THRESHOLD_MULTIPLIER,
                              rng = None) -> dict:
    """
    Analyse the synchronous dynamics of a weighted threshold network.

    **Parameters:**

        - nodes (list[dict | str]): Nodes ``{'id', 'label'?}``.
        - edges (list[dict]): Edges ``{'source', 'target', 'weight'?}``.
        - state_cap (int, optional): Maximum number of initial states
          (default ``config.WEIGHTED_DEFAULT_STATE_CAP``). Below 2^N the
          initial states are a stratified random sample.
        - step_cap (int, optional): Maximum number of updates per trajectory
          (default ``config.WEIGHTED_DEFAULT_STEP_CAP``).
        - tie_behavior (str, optional): ``'zero-as-zero'``, ``'zero-as-one'``
          or ``'hold'`` (default).
        - biases (dict[str:float], optional): Bias per node id.
        - threshold_multiplier (float, optional): Default 0.
        - rng (optional): Seed or generator for sampling; sampling is
          reproducible when omitted.

    **Returns:**

        - dict[str:Variant]: The analysis result (see
          :func:`basinforge.boolean_network.perform_deterministic_analysis`).
          When sampled, ``explorationMode`` is ``'sampled'`` and basin shares
          are fractions of the classified sample, not of 2^N.

    **Raises:**

        - ValueError: If ``nodes`` is None, the network has more than
          ``config.MAX_NODES_WEIGHTED`` nodes, a cap is invalid or the tie
          behaviour is unknown.
    """
    nodes = utils.normalize_nodes(nodes)
    if not nodes:
        return empty_analysis_result()
    _check_capacity(len(nodes))
    network = WeightedNetwork.from_edges(nodes, edges, biases=biases,
                                         threshold_multiplier=threshold_multiplier,
                                         tie_behavior=tie_behavior)
    return _analyse(network, state_cap, step_cap, rng)


def perform_weighted_matrix_analysis(nodes : list, matrix, biases = None,
                                     state_cap : Optional[int] = None,
                                     step_cap : Optional[int] = None,
                                     tie_behavior : str = config.DEFAULT_TIE_BEHAVIOR,
                                     threshold_multiplier : float = config.DEFAULT_THRESHOLD_MULTIPLIER,
                                     rng = None) -> dict:
    """
    Same as :func:`perform_weighted_analysis`, for a network given as an
    N x N weight matrix (row = target, column = source).

    **Parameters:**

        - matrix (array-like): The weight matrix.
        - biases (list[float] | dict[str:float], optional): A vector of
          length 0 or N, or a mapping from node id to bias.

    **Raises:**

        - ValueError: In addition to the cases of
          :func:`perform_weighted_analysis`, if the matrix is not N x N or the
          bias vector has the wrong length.
    """
    nodes = utils.normalize_nodes(nodes)
    if not nodes:
        return empty_analysis_result()
    _check_capacity(len(nodes))
    network = WeightedNetwork(nodes, matrix, biases=biases,
                              threshold_multiplier=threshold_multiplier,
                              tie_behavior=tie_behavior)
    return _analyse(network, state_cap, step_cap, rng)
