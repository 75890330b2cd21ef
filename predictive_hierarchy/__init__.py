"""
Predictive Hierarchy Package

Hierarchical predictive coding by free-energy minimization, following
Bogacz's tutorial formulation. A stack of levels is advanced one timestep
at a time with next_levels.

The package leaves JAX settings alone. Enable float64 in the program that
runs it, e.g. jax.config.update("jax_enable_x64", True), before building
any levels.
"""

__version__ = "0.2.0"
__author__ = "ddonatien"

from .exceptions import (HierarchyError, SingularMatrixError, ShapeMismatchError,
                         StackError, ConfigError)
from .config import CovarLimit, DEFAULT_COVAR_LIMIT, SCALAR_COVAR_MIN
from .level import Level, identity, no_attention
from .updates import (hypoth_inc, next_hypoth, error_inc, next_error,
                      covar_inc, next_covar, learn_inc, next_learn)
from .hierarchy import (next_level, next_levels, make_next_bottom, make_top_level,
                        level_energy, free_energy)
from .formatting import fmt_level, fmt_levels, log_levels
