"""
One level of a prediction-error/free-energy minimization hierarchy.

Based on Rafal Bogacz, "A Tutorial on the Free-energy Framework for
Modelling Perception and Learning", Journal of Mathematical Psychology
(2015). Names used in the paper are given in parentheses below.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from .config import DEFAULT_COVAR_LIMIT, CovarLimit
from .exceptions import ShapeMismatchError
from .linalg import as_array


def identity(x):
    return x


def no_attention(level, covar):
    return covar


@dataclass(frozen=True, eq=False)
class Level:
    """Values at one level of the hierarchy for one timestep.

    hypoth:  Hypothesis at this level (phi). At the bottom level this is
             sensory data; higher up it is a parameter of the hypothesis
             below, or a hyper-parameter.
    error:   Prediction error at this level (epsilon).
    covar:   Variance or covariance matrix of the assumed distribution over
             inputs at this level (Sigma).
    learn:   Scaling factor for the generative function of the level above
             (theta): learn * gen_above(hypoth_above) is the predicted mean
             of this level.
    gen, gen_prime:  Generative function mapping hypoth to a prediction for
             the level below, and its derivative (h, h'). Never updated.
    attn:    Function (level, covar) -> covar applied when computing error.
    covar_limit:  Lower bound applied to covar after each update.
    *_dt:    Step sizes for the four quantities.

    hypoth and error are either scalars, in which case covar and learn are
    too, or vectors of length k, in which case covar is k x k and learn is
    k x m for a level above with hypoth of length m.
    """

    hypoth: Any
    error: Any = None
    covar: Any = None
    learn: Any = None
    gen: Optional[Callable] = None
    gen_prime: Optional[Callable] = None
    attn: Callable = no_attention
    hypoth_dt: Optional[float] = None
    error_dt: Optional[float] = None
    covar_dt: Optional[float] = None
    learn_dt: Optional[float] = None
    covar_limit: CovarLimit = field(default=DEFAULT_COVAR_LIMIT, repr=False)

    def __post_init__(self):
        for name in ("hypoth", "error", "covar", "learn"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, as_array(value))
        for name in ("hypoth_dt", "error_dt", "covar_dt", "learn_dt"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, float(value))
        self._check_shapes()

    def _check_shapes(self):
        shape = self.hypoth.shape
        if len(shape) > 1:
            raise ShapeMismatchError(f"hypoth must be a scalar or a vector, got shape {shape}")
        if self.error is not None and self.error.shape != shape:
            raise ShapeMismatchError(f"error shape {self.error.shape} != hypoth shape {shape}")
        if self.covar is not None:
            expected = () if self.is_scalar else (shape[0], shape[0])
            # a single variance may also be given as a 1-vector
            if self.covar.shape != expected and not (shape == (1,) and self.covar.shape == (1,)):
                raise ShapeMismatchError(f"covar shape {self.covar.shape}, expected {expected}")
        if self.learn is not None:
            if self.is_scalar and self.learn.ndim != 0:
                raise ShapeMismatchError(f"learn must be scalar for scalar hypoth, got {self.learn.shape}")
            if not self.is_scalar and (self.learn.ndim != 2 or self.learn.shape[0] != shape[0]):
                raise ShapeMismatchError(f"learn shape {self.learn.shape} doesn't fit hypoth shape {shape}")

    @property
    def is_scalar(self):
        return self.hypoth.ndim == 0

    def replace(self, **changes):
        return replace(self, **changes)
