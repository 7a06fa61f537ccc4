#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mean-field probabilistic analysis.

Instead of following discrete states, every node carries the probability
``p_j`` of being active. One synchronous sweep computes the net input

    net_j = sum_i W[j, i] * p_i + bias_j + basal_j

and blends the current probability with the logistic response to it,

    p_j <- persistence * p_j + (1 - persistence) * sigma(net_j / noise),

where ``persistence = 1 - self_degradation``. A node without net input
simply decays by ``persistence``. Sweeps are repeated until the largest
change falls below the tolerance. The potential energy of a node is
``-ln(p_j)``.
"""

import logging

import numpy as np
from scipy.special import expit

from typing import Optional

try:
    import basinforge.utils as utils
    import basinforge.config as config
    from basinforge.weighted_network import edges_to_matrix, filter_edges
except ModuleNotFoundError:
    import utils
    import config
    from weighted_network import edges_to_matrix, filter_edges


__all__ = [
    "safe_logistic",
    "perform_probabilistic_analysis",
]

logger = logging.getLogger(__name__)


def safe_logistic(value, noise : float):
    """
    Logistic response ``1 / (1 + exp(-value / scale))`` with
    ``scale = max(|noise|, 1e-6)``.

    Exponents beyond +-60 saturate to exactly 0 or 1.

    **Parameters:**

        - value (float | np.ndarray): Net input(s).
        - noise (float): Noise level; larger values flatten the response.

    **Returns:**

        - float | np.ndarray: Activation probabilities in [0, 1].
    """
    scale = max(abs(float(noise)), config.MIN_NOISE_SCALE)
    x = np.asarray(value, dtype=float) / scale
    activation = np.where(x < -config.EXPONENT_CLAMP, 0.0,
                          np.where(x > config.EXPONENT_CLAMP, 1.0, expit(x)))
    if activation.ndim == 0:
        return float(activation)
    return activation


def _get_node_vector(node_order : list, values : Optional[dict], name : str,
                     warnings : list, default : float = 0.0) -> np.ndarray:
    vector = np.full(len(node_order), default, dtype=float)
    values = values or {}
    for i, node_id in enumerate(node_order):
        value = values.get(node_id)
        if value is None:
            continue
        if utils.is_finite_number(value):
            vector[i] = float(value)
        else:
            message = f"Non-finite {name} for {node_id} treated as {default:g}."
            warnings.append(message)
            logger.warning(message)
    return vector


def perform_probabilistic_analysis(nodes : list, edges : list,
                                   noise : float = config.PROBABILISTIC_DEFAULT_NOISE,
                                   self_degradation : float = config.PROBABILISTIC_DEFAULT_DEGRADATION,
                                   biases : Optional[dict] = None,
                                   basal_activity : Optional[dict] = None,
                                   initial_probability : float = config.PROBABILISTIC_DEFAULT_INITIAL_PROBABILITY,
                                   initial_probabilities : Optional[dict] = None,
                                   max_iterations : int = config.PROBABILISTIC_DEFAULT_ITERATIONS,
                                   tolerance : float = config.PROBABILISTIC_DEFAULT_TOLERANCE) -> dict:
    """
    Compute steady-state activation probabilities of a weighted network.

    **Parameters:**

        - nodes (list[dict | str]): Nodes ``{'id', 'label'?}``.
        - edges (list[dict]): Edges ``{'source', 'target', 'weight'?}``; the
          weight defaults to 1 and for a repeated pair the last edge wins.
        - noise (float, optional): Width of the logistic response
          (default 0.25).
        - self_degradation (float, optional): Fraction of the current
          probability that is lost per sweep, clamped to [0, 1]
          (default 0.1).
        - biases (dict[str:float], optional): Constant input per node id.
        - basal_activity (dict[str:float], optional): Additional constant
          input per node id.
        - initial_probability (float, optional): Starting probability of
          every node (default 0.5), clamped to [0, 1].
        - initial_probabilities (dict[str:float], optional): Per-node
          starting probabilities overriding ``initial_probability``. NaN
          counts as 0.
        - max_iterations (int, optional): Maximum number of sweeps
          (default 500, at least 1).
        - tolerance (float, optional): Convergence threshold on the largest
          per-node change (default 1e-4, at least 1e-8).

    **Returns:**

        - dict[str:Variant]: A dictionary containing:

            - nodeOrder (list[str]): Node ids.
            - probabilities (dict[str:float]): Final probability per node,
              in [0, 1].
            - potentialEnergies (dict[str:float]): ``-ln(max(p, 1e-9))``
              per node.
            - iterations (int): Number of sweeps performed.
            - converged (bool): Whether the tolerance was reached.
            - warnings (list[str]): Non-convergence and input warnings.

    **Raises:**

        - ValueError: If ``nodes`` is None.
    """
    nodes = utils.normalize_nodes(nodes)
    if not nodes:
        message = "No nodes supplied; analysis skipped."
        logger.warning(message)
        return {
            'nodeOrder': [],
            'probabilities': {},
            'potentialEnergies': {},
            'iterations': 0,
            'converged': True,
            'warnings': [message],
        }

    node_order = [node['id'] for node in nodes]
    usable, warnings = filter_edges(node_order, edges)
    W = np.array(edges_to_matrix(node_order, usable)['matrix'], dtype=float)

    noise = utils.to_finite_float(noise, config.PROBABILISTIC_DEFAULT_NOISE)
    persistence = utils.clamp01(1 - utils.clamp01(
        utils.to_finite_float(self_degradation, config.PROBABILISTIC_DEFAULT_DEGRADATION)))
    max_iterations = max(1, int(np.floor(utils.to_finite_float(max_iterations,
                                                               config.PROBABILISTIC_DEFAULT_ITERATIONS))))
    tolerance = max(config.MIN_TOLERANCE, utils.to_finite_float(tolerance, config.PROBABILISTIC_DEFAULT_TOLERANCE))

    drive = (_get_node_vector(node_order, biases, 'bias', warnings)
             + _get_node_vector(node_order, basal_activity, 'basal activity', warnings))

    global_initial = utils.clamp01(initial_probability if initial_probability is not None
                                   else config.PROBABILISTIC_DEFAULT_INITIAL_PROBABILITY)
    initial_probabilities = initial_probabilities or {}
    probabilities = np.array([utils.clamp01(initial_probabilities[node_id])
                              if initial_probabilities.get(node_id) is not None else global_initial
                              for node_id in node_order], dtype=float)

    logger.debug("Probabilistic analysis of %i nodes: noise=%g, persistence=%g, max_iterations=%i, tolerance=%g",
                 len(node_order), noise, persistence, max_iterations, tolerance)

    converged = False
    iterations = max_iterations
    for iteration in range(max_iterations):
        net = W @ probabilities + drive
        no_input = np.abs(net) < config.ZERO_TOLERANCE
        updated = np.where(no_input,
                           probabilities * persistence,
                           persistence * probabilities + (1 - persistence) * safe_logistic(net, noise))
        updated = np.clip(updated, 0.0, 1.0)
        max_delta = float(np.max(np.abs(updated - probabilities)))
        probabilities = updated
        if max_delta < tolerance:
            converged = True
            iterations = iteration + 1
            break

    if not converged:
        message = (f"Probabilistic analysis reached the maximum iteration count ({max_iterations}) before converging. "
                   "Consider increasing max_iterations or relaxing the tolerance.")
        warnings.append(message)
        logger.warning(message)

    energies = -np.log(np.maximum(probabilities, config.MIN_PROBABILITY))
    return {
        'nodeOrder': node_order,
        'probabilities': dict(zip(node_order, probabilities.tolist())),
        'potentialEnergies': dict(zip(node_order, energies.tolist())),
        'iterations': iterations,
        'converged': converged,
        'warnings': warnings,
    }
