#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Attractor detection and basin accounting for synchronous dynamics.

Both discrete engines (rule-based and weighted) reduce a network to a
function ``update_state(int) -> int`` on encoded states. This module walks
trajectories of that function, detects where they close into a cycle, and
credits every visited state to exactly one attractor:

    - a trajectory that reaches an already classified state joins that
      state's attractor;
    - a trajectory that revisits one of its own states closes a new cycle;
      the cycle and the transient leading into it form a new attractor;
    - a trajectory that runs out of steps is left unclassified.

States are plain integers and all bookkeeping uses dictionaries keyed by
state, so the (cyclic) state transition graph is never materialised as an
object graph.
"""

import logging

try:
    import basinforge.utils as utils
except ModuleNotFoundError:
    import utils


__all__ = [
    "get_attractors_synchronous",
    "build_analysis_result",
    "empty_analysis_result",
    "check_state_caps",
]

logger = logging.getLogger(__name__)


def check_state_caps(state_cap, step_cap) -> tuple:
    """
    Validate exploration caps.

    **Returns:**

        - tuple[int, int]: ``(state_cap, step_cap)`` as ints.

    **Raises:**

        - TypeError: If a cap is not an integer.
        - ValueError: If a cap is smaller than 1.
    """
    caps = []
    for name, value in (('state_cap', state_cap), ('step_cap', step_cap)):
        if isinstance(value, bool) or not isinstance(value, int):
            try:
                is_integral = float(value).is_integer()
            except (TypeError, ValueError):
                is_integral = False
            if not is_integral:
                raise TypeError(f"{name} must be an integer, got {value!r}")
        value = int(value)
        if value < 1:
            raise ValueError(f"{name} must be at least 1, got {value}")
        caps.append(value)
    return tuple(caps)


def get_attractors_synchronous(update_state, initial_states, step_cap : int) -> dict:
    """
    Find the attractors reached from a collection of initial states.

    For each initial state that is not yet classified, the trajectory
    ``x, update_state(x), ...`` is followed for at most ``step_cap`` updates.
    Every state on a resolved trajectory is credited to exactly one
    attractor, the first time it is seen.

    **Parameters:**

        - update_state (callable[int, int]): Synchronous update on encoded
          states.
        - initial_states (iterable[int]): Initial states, in the order they
          are tried.
        - step_cap (int): Maximum number of updates per trajectory.

    **Returns:**

        - dict[str:Variant]: A dictionary containing:

            - Attractors (list[list[int]]): Each attractor as the list of
              states around its cycle, starting with the first cycle state
              that was reached.
            - NumberOfAttractors (int): Number of attractors found.
            - BasinSizes (list[int]): Number of states credited to each
              attractor (cycle states included).
            - AttractorDict (dict[int:int]): Attractor index of every
              classified state.
            - NumberOfInitialStates (int): Number of initial states tried.
            - NumberOfTimeouts (int): Trajectories that exhausted
              ``step_cap``.
            - UnresolvedStates (int): Total length of those trajectories.
    """
    attractors = []
    basin_sizes = []
    attractor_dict = dict()
    n_initial_states = 0
    n_timeouts = 0
    unresolved_states = 0

    for xdec in initial_states:
        n_initial_states += 1
        if xdec in attractor_dict:
            continue

        queue = []
        index_in_queue = dict()
        steps = 0
        while True:
            index_attr = attractor_dict.get(xdec)
            if index_attr is not None:
                attractor_dict.update(zip(queue, [index_attr] * len(queue)))
                basin_sizes[index_attr] += len(queue)
                break

            index = index_in_queue.get(xdec)
            if index is not None:
                index_attr = len(attractors)
                attractors.append(queue[index:])
                attractor_dict.update(zip(queue, [index_attr] * len(queue)))
                basin_sizes.append(len(queue))
                break

            if steps >= step_cap:
                n_timeouts += 1
                unresolved_states += len(queue)
                break

            index_in_queue[xdec] = len(queue)
            queue.append(xdec)
            xdec = update_state(xdec)
            steps += 1

    return dict(zip(["Attractors", "NumberOfAttractors", "BasinSizes", "AttractorDict",
                     "NumberOfInitialStates", "NumberOfTimeouts", "UnresolvedStates"],
                    (attractors, len(attractors), basin_sizes, attractor_dict,
                     n_initial_states, n_timeouts, unresolved_states)))


def empty_analysis_result(warning : str = "No nodes supplied; analysis skipped.") -> dict:
    """Result returned for a network without nodes."""
    logger.warning(warning)
    return {
        'nodeOrder': [],
        'nodeLabels': {},
        'attractors': [],
        'exploredStateCount': 0,
        'totalStateSpace': 0,
        'truncated': False,
        'warnings': [warning],
        'unresolvedStates': 0,
        'explorationMode': 'exhaustive',
        'initialStateCount': 0,
    }


def build_analysis_result(node_order : list, node_labels : dict, search : dict,
                          total_state_space : int, state_cap : int, step_cap : int,
                          exploration_mode : str = 'exhaustive',
                          warnings : list = None) -> dict:
    """
    Assemble the serialisable analysis result from a search.

    **Parameters:**

        - node_order (list[str]): Node ids in bit order.
        - node_labels (dict[str:str]): Display label per node id.
        - search (dict): Output of :func:`get_attractors_synchronous`.
        - total_state_space (int): 2^N.
        - state_cap (int): Cap on the number of initial states.
        - step_cap (int): Cap on updates per trajectory.
        - exploration_mode (str): ``'exhaustive'`` if every state was used
          as an initial state, ``'sequential'`` for the prefix
          ``0, 1, ..., state_cap-1`` and ``'sampled'`` for a random sample.
        - warnings (list[str], optional): Warnings collected so far; copied,
          not modified.

    **Returns:**

        - dict[str:Variant]: The analysis result. Basin shares are fractions
          of ``exploredStateCount``, the number of classified states.
    """
    warnings = list(warnings or [])
    explored_state_count = len(search['AttractorDict'])
    truncated = exploration_mode != 'exhaustive'

    if truncated:
        message = (f"State space ({total_state_space}) exceeds cap ({state_cap}); analysis covers a subset: "
                   f"{explored_state_count} of {total_state_space} states explored")
        if exploration_mode == 'sampled':
            message += f" from {search['NumberOfInitialStates']} randomly sampled initial states"
        warnings.append(message + '.')
        logger.warning(message)

    if search['NumberOfTimeouts'] > 0:
        message = (f"Traversal step cap ({step_cap}) reached for {search['NumberOfTimeouts']} trajectories; "
                   f"{search['UnresolvedStates']} states left unresolved.")
        warnings.append(message)
        logger.warning(message)

    attractors = []
    for index_attr, cycle in enumerate(search['Attractors']):
        period = len(cycle)
        basin_size = search['BasinSizes'][index_attr]
        attractors.append({
            'id': index_attr,
            'type': 'fixed-point' if period == 1 else 'limit-cycle',
            'period': period,
            'states': [utils.format_state(xdec, node_order, node_labels) for xdec in cycle],
            'basinSize': basin_size,
            'basinShare': basin_size / explored_state_count if explored_state_count > 0 else 0.0,
        })

    logger.debug("Found %i attractors in %i explored states (%s exploration).",
                 len(attractors), explored_state_count, exploration_mode)

    return {
        'nodeOrder': list(node_order),
        'nodeLabels': dict(node_labels),
        'attractors': attractors,
        'exploredStateCount': explored_state_count,
        'totalStateSpace': total_state_space,
        'truncated': truncated,
        'warnings': warnings,
        'unresolvedStates': search['UnresolvedStates'],
        'explorationMode': exploration_mode,
        'initialStateCount': search['NumberOfInitialStates'],
    }
