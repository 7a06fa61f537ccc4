#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Rule-based Boolean networks and their synchronous attractor analysis.

A rule-based network assigns each node a symbolic update rule
``"TARGET = EXPRESSION"`` (see :mod:`basinforge.expression`). Nodes without a
rule, and nodes whose rule fails to compile, keep their value (identity
update). :func:`perform_deterministic_analysis` enumerates initial states,
follows synchronous trajectories and reports every attractor together with
its basin.
"""

import copy
import logging

import numpy as np

from typing import Optional

try:
    import basinforge.utils as utils
    import basinforge.config as config
    from basinforge.attractors import get_attractors_synchronous, build_analysis_result, empty_analysis_result, check_state_caps
    from basinforge.expression import NodeResolver, compile_expression, parse_rule
    from basinforge.wiring_diagram import WiringDiagram
except ModuleNotFoundError:
    import utils
    import config
    from attractors import get_attractors_synchronous, build_analysis_result, empty_analysis_result, check_state_caps
    from expression import NodeResolver, compile_expression, parse_rule
    from wiring_diagram import WiringDiagram


__all__ = [
    "RuleBasedNetwork",
    "perform_deterministic_analysis",
]

logger = logging.getLogger(__name__)


class RuleBasedNetwork(object):
    """
    A Boolean network defined by symbolic update rules.

    **Constructor Parameters:**

        - nodes (list[dict | str]): Nodes ``{'id', 'label'?}`` in bit order.
        - rules (list[str], optional): Rules ``"TARGET = EXPRESSION"``.
          TARGET and the identifiers in EXPRESSION resolve case-insensitively
          against node ids and labels.

    **Members:**

        - node_order (list[str]): Node ids; bit ``i`` belongs to
          ``node_order[i]``.
        - node_labels (dict[str:str]): Display label per node id.
        - N (int): Number of nodes.
        - F (list[RuleProgram | None]): Compiled rule per node; None means
          identity update.
        - resolver (NodeResolver): Identifier lookup used for compilation.
        - warnings (list[str]): Problems found while reading the rules.
        - STG (dict[int:int] | None): Synchronous state transition graph,
          once computed.

    Rules that cannot be used never raise: a warning is recorded and the
    affected node keeps the identity update.
    """

    def __init__(self, nodes : list, rules : Optional[list] = None):
        self.nodes = utils.normalize_nodes(nodes)
        self.node_order = [node['id'] for node in self.nodes]
        self.node_labels = utils.get_node_labels(self.nodes)
        self.N = len(self.node_order)
        self.resolver = NodeResolver(self.node_order,
                                     {node['id']: node['label'] for node in self.nodes if node['label']})
        self.F = [None] * self.N
        self.warnings = []
        self.STG = None

        if rules is not None and (isinstance(rules, str) or not hasattr(rules, '__iter__')):
            raise TypeError("rules must be a list of strings")
        has_rule = [False] * self.N
        for rule in rules or []:
            self._add_rule(rule, has_rule)

    def _warn(self, message : str) -> None:
        self.warnings.append(message)
        logger.warning(message)

    def _add_rule(self, rule, has_rule : list) -> None:
        if not isinstance(rule, str):
            self._warn(f"Skipping non-string rule: {rule!r}")
            return
        if not rule.strip():
            return
        try:
            target, expression = parse_rule(rule)
        except ValueError:
            self._warn(f"Skipping malformed rule: {rule}")
            return
        try:
            index = self.resolver.resolve(target)
        except ValueError as e:
            self._warn(f"Rule target not found in node list: {target} ({e})")
            return
        node_id = self.node_order[index]
        if has_rule[index]:
            self._warn(f"Duplicate rule for {node_id}; the later rule replaces the earlier one.")
        has_rule[index] = True
        try:
            self.F[index] = compile_expression(expression, self.resolver, name=node_id)
        except ValueError as e:
            self.F[index] = None
            self._warn(f"Failed to compile rule for {target}: {e}")

    def __len__(self):
        return self.N

    def __str__(self):
        n_rules = sum(f is not None for f in self.F)
        return f"Rule-based Boolean network of {self.N} nodes with {n_rules} compiled rules"

    def __getitem__(self, index):
        return self.F[index]

    ## Dynamics
    def update_single_node(self, index : int, X) -> int:
        """
        Compute the next value of node ``index`` from the full state ``X``.
        """
        f = self.F[index]
        if f is None:
            return 1 if X[index] else 0
        return f(X)

    def update_network_synchronously(self, X) -> np.ndarray:
        """
        Perform a synchronous update.

        Every next value is computed from the same state ``X``; the new
        values are committed together.

        **Parameters:**

            - X (list[int] | np.array[int]): Current state vector.

        **Returns:**

            - np.array[int]: New state vector after the update.
        """
        X = np.asarray(X, dtype=np.uint8)
        Fx = np.zeros(self.N, dtype=np.uint8)
        for i in range(self.N):
            Fx[i] = self.update_single_node(i, X)
        return Fx

    def update_state(self, xdec : int) -> int:
        """Synchronous update on encoded states."""
        if self.STG is not None:
            return self.STG[xdec]
        return utils.encode_state(self.update_network_synchronously(utils.decode_state(xdec, self.N)))

    def _check_capacity(self) -> None:
        if self.N > config.MAX_NODES_DETERMINISTIC:
            raise ValueError(f"Deterministic analysis currently supports up to {config.MAX_NODES_DETERMINISTIC} nodes "
                             f"(network has {self.N}).")

    def compute_synchronous_state_transition_graph(self) -> dict:
        """
        Compute the synchronous state transition graph for all 2^N states,
        vectorised over states.

        **Returns:**

            - dict[int:int]: Successor of every encoded state. Also stored as
              ``self.STG``.

        **Raises:**

            - ValueError: If the network exceeds the node ceiling.
        """
        self._check_capacity()
        size = 2**self.N
        indices = np.arange(size, dtype=np.int64)
        states = ((indices[:, None] >> np.arange(self.N, dtype=np.int64)[None]) & 1).astype(np.uint8)
        columns = states.T
        next_states = np.zeros_like(states)
        for j, f in enumerate(self.F):
            if f is None:
                next_states[:, j] = columns[j]
            else:
                next_states[:, j] = f.evaluate_columns(columns, size)
        powers_of_two = np.int64(1) << np.arange(self.N, dtype=np.int64)
        next_indices = next_states.astype(np.int64) @ powers_of_two
        self.STG = dict(zip(range(size), next_indices.tolist()))
        return self.STG

    def get_attractors_synchronous_exact(self, state_cap : Optional[int] = None,
                                         step_cap : Optional[int] = None) -> dict:
        """
        Find attractors and basins by following trajectories from the
        initial states ``0, 1, ..., min(state_cap, 2^N) - 1``.

        **Parameters:**

            - state_cap (int, optional): Maximum number of initial states.
              Defaults to ``config.DEFAULT_STATE_CAP``.
            - step_cap (int, optional): Maximum number of updates per
              trajectory. Defaults to ``config.DEFAULT_STEP_CAP``.

        **Returns:**

            - dict[str:Variant]: The search summary of
              :func:`basinforge.attractors.get_attractors_synchronous`.

        **Raises:**

            - ValueError: If the network exceeds the node ceiling or a cap
              is invalid.
        """
        self._check_capacity()
        state_cap, step_cap = check_state_caps(
            config.DEFAULT_STATE_CAP if state_cap is None else state_cap,
            config.DEFAULT_STEP_CAP if step_cap is None else step_cap)
        initial_limit = min(state_cap, 2**self.N)
        return get_attractors_synchronous(self.update_state, range(initial_limit), step_cap)

    ## Structure and interventions
    def get_wiring_diagram(self) -> WiringDiagram:
        """
        Return the wiring diagram implied by the rules. A node without a
        rule keeps its own value and is therefore its own regulator.
        """
        I = [f.regulators if f is not None else [i] for i, f in enumerate(self.F)]
        return WiringDiagram(I, self.node_order)

    def get_network_with_node_controls(self, controls : dict) -> "RuleBasedNetwork":
        """
        Return a copy of the network in which some nodes are fixed.

        **Parameters:**

            - controls (dict[str:int]): Node id or label -> fixed value
              (0 for a knock-out, 1 for a knock-in).

        **Returns:**

            - RuleBasedNetwork: The controlled network; this network is left
              unchanged.

        **Raises:**

            - ValueError: If a node cannot be resolved or a value is not 0/1.
        """
        bn = copy.copy(self)
        bn.F = list(self.F)
        bn.warnings = list(self.warnings)
        bn.STG = None
        for name, value in controls.items():
            if value not in (0, 1):
                raise ValueError(f"Controlled node values must be 0 or 1, got {value!r} for {name}")
            index = self.resolver.resolve(str(name))
            bn.F[index] = compile_expression(str(int(value)), self.resolver, name=self.node_order[index])
        return bn


def perform_deterministic_analysis(nodes : list, rules : list,
                                   state_cap : Optional[int] = None,
                                   step_cap : Optional[int] = None) -> dict:
    """
    Analyse the synchronous dynamics of a rule-based Boolean network.

    Initial states ``0, 1, ..., min(state_cap, 2^N) - 1`` are explored in
    order; each trajectory is followed for at most ``step_cap`` updates.

    **Parameters:**

        - nodes (list[dict | str]): Nodes ``{'id', 'label'?}``; their order
          fixes the bit order of every state.
        - rules (list[str]): Update rules ``"TARGET = EXPRESSION"``.
        - state_cap (int, optional): Maximum number of initial states
          (default ``config.DEFAULT_STATE_CAP``).
        - step_cap (int, optional): Maximum number of updates per trajectory
          (default ``config.DEFAULT_STEP_CAP``).

    **Returns:**

        - dict[str:Variant]: The analysis result with keys ``nodeOrder``,
          ``nodeLabels``, ``attractors``, ``exploredStateCount``,
          ``totalStateSpace``, ``truncated``, ``warnings``,
          ``unresolvedStates``, ``explorationMode`` and
          ``initialStateCount``.

    **Raises:**

        - ValueError: If ``nodes`` is None, the network has more than
          ``config.MAX_NODES_DETERMINISTIC`` nodes, or a cap is invalid.

    **Examples:**

        >>> result = perform_deterministic_analysis(['A'], ['A = A'])
        >>> [a['type'] for a in result['attractors']]
        ['fixed-point', 'fixed-point']
    """
    nodes = utils.normalize_nodes(nodes)
    if not nodes:
        return empty_analysis_result()

    bn = RuleBasedNetwork(nodes, rules)
    state_cap = config.DEFAULT_STATE_CAP if state_cap is None else state_cap
    step_cap = config.DEFAULT_STEP_CAP if step_cap is None else step_cap
    search = bn.get_attractors_synchronous_exact(state_cap, step_cap)
    state_cap, step_cap = check_state_caps(state_cap, step_cap)

    total_state_space = 2**bn.N
    logger.debug("Rule-based analysis of %i nodes: state_cap=%i, step_cap=%i", bn.N, state_cap, step_cap)
    return build_analysis_result(bn.node_order, bn.node_labels, search, total_state_space,
                                 state_cap, step_cap,
                                 exploration_mode='exhaustive' if state_cap >= total_state_space else 'sequential',
                                 warnings=bn.warnings)
