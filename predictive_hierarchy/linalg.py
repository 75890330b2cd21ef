"""Scalar/vector/matrix arithmetic used by the update rules.

Every quantity is a JAX array of rank 0, 1 or 2. Scalars get scalar
arithmetic and everything else gets the matching linear-algebra operation,
so the update rules are written once for both cases.
"""

import logging

import jax.numpy as jnp

from .exceptions import ShapeMismatchError, SingularMatrixError

logger = logging.getLogger(__name__)


def as_array(x):
    """Converts x to a float array of rank 0, 1 or 2.

    The dtype is JAX's default float: float64 only when the caller has
    enabled jax_enable_x64, float32 otherwise.
    """
    arr = jnp.asarray(x, dtype=float)
    if arr.ndim > 2:
        raise ShapeMismatchError(f"Expected a scalar, vector or matrix, got shape {arr.shape}")
    return arr


def transpose(x):
    x = as_array(x)
    return x.T if x.ndim == 2 else x


def is_unit(x):
    """True for scalars and single-element vectors or matrices."""
    return jnp.shape(x) in ((), (1,), (1, 1))


def mmul(a, b):
    """Matrix product, or plain product when both operands are scalars."""
    a, b = as_array(a), as_array(b)
    if a.ndim == 0 and b.ndim == 0:
        return a * b
    if a.ndim == 0 or b.ndim == 0:
        raise ShapeMismatchError(f"Can't matrix-multiply shapes {a.shape} and {b.shape}")
    if a.shape[-1] != b.shape[0]:
        raise ShapeMismatchError(f"Inner dimensions differ: {a.shape} @ {b.shape}")
    return a @ b


def mul(a, b):
    """Elementwise product of two values of the same shape."""
    a, b = as_array(a), as_array(b)
    if a.shape != b.shape:
        raise ShapeMismatchError(f"Can't multiply shapes {a.shape} and {b.shape} elementwise")
    return a * b


def outer(a, b):
    """a times the transpose of b: outer product for vectors."""
    a, b = as_array(a), as_array(b)
    if a.ndim != b.ndim:
        raise ShapeMismatchError(f"Can't form a . b^T for shapes {a.shape} and {b.shape}")
    if a.ndim == 0:
        return a * b
    if a.ndim == 1:
        return jnp.outer(a, b)
    return mmul(a, b.T)


def square(x):
    return outer(x, x)


def inverse(x):
    """Inverse of a variance or covariance matrix.

    Raises SingularMatrixError instead of returning inf/nan entries.
    """
    x = as_array(x)
    if x.ndim == 1:
        if x.shape != (1,):
            raise ShapeMismatchError(f"Can't invert a vector of shape {x.shape}")
        x = x.reshape(1, 1)
        return inverse(x).reshape(1)
    if x.ndim == 0:
        if x == 0 or not jnp.isfinite(x):
            logger.debug("singular variance %s", x)
            raise SingularMatrixError(x)
        return 1.0 / x
    if x.shape[0] != x.shape[1]:
        raise ShapeMismatchError(f"Can't invert non-square matrix of shape {x.shape}")
    # condition number past 1/eps means the matrix is singular to working precision
    cond = jnp.linalg.cond(x)
    if not jnp.isfinite(cond) or cond > 1.0 / jnp.finfo(x.dtype).eps:
        logger.debug("singular covariance (cond=%s) %s", cond, x)
        raise SingularMatrixError(x)
    inv = jnp.linalg.inv(x)
    if not jnp.all(jnp.isfinite(inv)):
        logger.debug("non-finite inverse for covariance %s", x)
        raise SingularMatrixError(x)
    return inv
