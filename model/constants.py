"""
Constants for the cognition regression models.

This module centralizes constants and default configuration values used
throughout the codebase to eliminate magic numbers.
"""

# =======================================================
# Model kinds
# =======================================================

LINEAR_MODEL = "linear"
FLAT_MODEL = "flat"
HIERARCHICAL_MODEL = "hierarchical"
BAYESIAN_MODEL_KINDS = (FLAT_MODEL, HIERARCHICAL_MODEL)
MODEL_TYPES = (LINEAR_MODEL,) + BAYESIAN_MODEL_KINDS

# Name of the intercept entry in every coefficient vector
INTERCEPT = "intercept"

# =======================================================
# Prior distribution parameters (precision parameterization)
# =======================================================

# Vague normal prior on coefficients: N(0, precision=1e-4), i.e. sd=100
DEFAULT_COEF_PRIOR_MEAN = 0.0
DEFAULT_COEF_PRIOR_PRECISION = 1.0e-4

# Gamma(0.01, 0.01) prior on precisions (observation and group level)
DEFAULT_PRECISION_PRIOR_ALPHA = 0.01
DEFAULT_PRECISION_PRIOR_BETA = 0.01

# =======================================================
# MCMC sampling parameters
# =======================================================

DEFAULT_DRAWS = 2000
DEFAULT_TUNE = 1000
DEFAULT_CHAINS = 3
DEFAULT_CORES = 1
DEFAULT_TARGET_ACCEPT = 0.9
DEFAULT_RANDOM_SEED = 42
STEP_METHODS = ("nuts", "metropolis")
DEFAULT_STEP_METHOD = "nuts"

# =======================================================
# Diagnostics
# =======================================================

RHAT_THRESHOLD = 1.05
MIN_EFFECTIVE_SAMPLE_SIZE = 400
DEFAULT_MAX_LAG = 50

# =======================================================
# Visualization parameters
# =======================================================

DEFAULT_FIGURE_SIZE = (10, 6)
DEFAULT_DPI = 100
