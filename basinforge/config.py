#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Default parameters for the analysis engines.

All engines read their defaults from here; every value can be overridden per
call through keyword arguments.
"""

## Rule-based (deterministic) analysis
DEFAULT_STATE_CAP = 131072
DEFAULT_STEP_CAP = 131072
MAX_NODES_DETERMINISTIC = 20

## Weighted (threshold) analysis
WEIGHTED_DEFAULT_STATE_CAP = 100_000
WEIGHTED_DEFAULT_STEP_CAP = 10_000
MAX_NODES_WEIGHTED = 52
DEFAULT_TIE_BEHAVIOR = 'hold'
TIE_BEHAVIORS = ('zero-as-zero', 'zero-as-one', 'hold')
DEFAULT_THRESHOLD_MULTIPLIER = 0.0
MATRIX_DEFAULT_THRESHOLD_MULTIPLIER = 0.5
MATRIX_DEFAULT_TIE_BEHAVIOR = 'zero-as-zero'
DEFAULT_SAMPLING_SEED = 0

## Probabilistic (mean-field) analysis
PROBABILISTIC_DEFAULT_NOISE = 0.25
PROBABILISTIC_DEFAULT_DEGRADATION = 0.1
PROBABILISTIC_DEFAULT_ITERATIONS = 500
PROBABILISTIC_DEFAULT_TOLERANCE = 1e-4
PROBABILISTIC_DEFAULT_INITIAL_PROBABILITY = 0.5
ZERO_TOLERANCE = 1e-9
MIN_PROBABILITY = 1e-9
MIN_TOLERANCE = 1e-8
MIN_NOISE_SCALE = 1e-6
EXPONENT_CLAMP = 60.0

ANALYSIS_CONFIG = {
    'DEFAULT_STATE_CAP': DEFAULT_STATE_CAP,
    'DEFAULT_STEP_CAP': DEFAULT_STEP_CAP,
    'MAX_NODES_DETERMINISTIC': MAX_NODES_DETERMINISTIC,
    'WEIGHTED_DEFAULT_STATE_CAP': WEIGHTED_DEFAULT_STATE_CAP,
    'WEIGHTED_DEFAULT_STEP_CAP': WEIGHTED_DEFAULT_STEP_CAP,
    'MAX_NODES_WEIGHTED': MAX_NODES_WEIGHTED,
    'DEFAULT_TIE_BEHAVIOR': DEFAULT_TIE_BEHAVIOR,
    'DEFAULT_THRESHOLD_MULTIPLIER': DEFAULT_THRESHOLD_MULTIPLIER,
    'DEFAULT_SAMPLING_SEED': DEFAULT_SAMPLING_SEED,
    'PROBABILISTIC_DEFAULT_NOISE': PROBABILISTIC_DEFAULT_NOISE,
    'PROBABILISTIC_DEFAULT_DEGRADATION': PROBABILISTIC_DEFAULT_DEGRADATION,
    'PROBABILISTIC_DEFAULT_ITERATIONS': PROBABILISTIC_DEFAULT_ITERATIONS,
    'PROBABILISTIC_DEFAULT_TOLERANCE': PROBABILISTIC_DEFAULT_TOLERANCE,
}
