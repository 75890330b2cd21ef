"""
Update rules for a single level.

Each quantity has an increment function (the right-hand side of the
corresponding equation in Bogacz's tutorial) and a next_* function that
takes one Euler step of size <quantity>_dt. All of them are pure: they read
levels and return new arrays.
"""

import jax.numpy as jnp

from .exceptions import ShapeMismatchError
from .linalg import inverse, mmul, mul, outer, square, transpose


def _step(name, value, dt, inc):
    if inc.shape != value.shape:
        raise ShapeMismatchError(f"{name} increment has shape {inc.shape}, expected {value.shape}")
    return value + dt * inc


##################
# hypoth (phi), eqs. (44), (53)

def hypoth_inc(hypoth, error, error_below, learn_below, gen_prime):
    # learn-weighted error from the level below, through the slope of gen,
    # minus the error at this level
    return mul(gen_prime(hypoth), mmul(transpose(learn_below), error_below)) - error


def next_hypoth(level_below, level):
    inc = hypoth_inc(level.hypoth, level.error,
                     level_below.error, level_below.learn, level.gen_prime)
    return _step("hypoth", level.hypoth, level.hypoth_dt, inc)


##################
# error (epsilon), eq. (54)

def error_inc(error, hypoth, hypoth_above, covar, learn, gen_above, attn):
    return hypoth - mmul(learn, gen_above(hypoth_above)) - mmul(attn(covar), error)


def next_error(level, level_above):
    def attn(covar):
        return level.attn(level, covar)

    inc = error_inc(level.error, level.hypoth, level_above.hypoth,
                    level.covar, level.learn, level_above.gen, attn)
    return _step("error", level.error, level.error_dt, inc)


##################
# covar (Sigma), eq. (55)
# Uses a full matrix inverse rather than the local Hebbian scheme of
# section 5 of the tutorial.

def covar_inc(error, covar):
    """Raises SingularMatrixError if covar can't be inverted."""
    sq = square(error)
    if jnp.shape(covar) == (1,):
        sq = sq.reshape(1)
    return 0.5 * (sq - inverse(covar))


def next_covar(level):
    inc = covar_inc(level.error, level.covar)
    return level.covar_limit(_step("covar", level.covar, level.covar_dt, inc))


##################
# learn (theta), eq. (56)

def learn_inc(error, hypoth_above, gen_above):
    return outer(error, gen_above(hypoth_above))


def next_learn(level, level_above):
    inc = learn_inc(level.error, level_above.hypoth, level_above.gen)
    return _step("learn", level.learn, level.learn_dt, inc)
