"""
Configuration for covariance limiting.

A variance should usually stay >= 1 (Bogacz, p. 5). For scalar and 1x1
covariance that's a plain clamp. For larger covariance matrices there is
no single obvious lower bound, so the policy is chosen explicitly:

    none         leave the matrix as is (default)
    diagonal     raise each variance on the diagonal to matrix_min
    eigenvalues  symmetrise and clip the spectrum at matrix_min

Usage::

    limit = CovarLimit(matrix_policy="eigenvalues", matrix_min=0.5)
    limit = CovarLimit.from_dict({"scalar_min": 2.0})
    level = Level(..., covar_limit=limit)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Optional

import jax.numpy as jnp

from .exceptions import ConfigError
from .linalg import as_array, is_unit

logger = logging.getLogger(__name__)

SCALAR_COVAR_MIN = 1.0
MATRIX_POLICIES = ("none", "diagonal", "eigenvalues")


@dataclass(frozen=True)
class CovarLimit:
    """Lower bound applied to a covariance after every update.

    Parameters
    ----------
    scalar_min : float — minimum for scalar, (1,) and (1, 1) covariance.
    matrix_policy : str — one of MATRIX_POLICIES, used for larger matrices.
    matrix_min : float — bound used by the matrix policy (defaults to scalar_min).
    """

    scalar_min: float = SCALAR_COVAR_MIN
    matrix_policy: str = "none"
    matrix_min: Optional[float] = None

    def __post_init__(self):
        if self.matrix_policy not in MATRIX_POLICIES:
            raise ConfigError(
                f"matrix_policy must be one of {MATRIX_POLICIES}, got {self.matrix_policy!r}"
            )
        if self.matrix_min is None:
            object.__setattr__(self, "matrix_min", self.scalar_min)
        for name in ("scalar_min", "matrix_min"):
            try:
                object.__setattr__(self, name, float(getattr(self, name)))
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"{name} must be a number, got {getattr(self, name)!r}") from exc
        if not self.scalar_min > 0 or not self.matrix_min > 0:
            raise ConfigError("Covariance minimums must be positive")

    @classmethod
    def from_dict(cls, data: dict) -> "CovarLimit":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def __call__(self, covar):
        covar = as_array(covar)
        if is_unit(covar):
            return jnp.maximum(covar, self.scalar_min)
        if self.matrix_policy == "diagonal":
            diag = jnp.diagonal(covar)
            return covar + jnp.diag(jnp.maximum(diag, self.matrix_min) - diag)
        if self.matrix_policy == "eigenvalues":
            sym = 0.5 * (covar + covar.T)
            vals, vecs = jnp.linalg.eigh(sym)
            if bool(jnp.any(vals < self.matrix_min)):
                logger.debug("clipping covariance eigenvalues %s", vals)
            vals = jnp.maximum(vals, self.matrix_min)
            return (vecs * vals) @ vecs.T
        return covar


DEFAULT_COVAR_LIMIT = CovarLimit()
