"""
Advancing a whole stack of levels by one timestep.

A stack is a sequence of Levels ordered bottom (sensory input) to top
(constant prior). The bottom and top are special cases: the bottom gets its
hypoth from outside the system, and the top is carried forward unchanged.
"""

import logging

import jax.numpy as jnp

from .exceptions import StackError
from .level import Level, identity
from .linalg import mmul
from .updates import next_covar, next_error, next_hypoth, next_learn

logger = logging.getLogger(__name__)


def next_level(level_below, level, level_above):
    """Returns the value of a middle level for the next timestep."""
    return level.replace(
        hypoth=next_hypoth(level_below, level),
        error=next_error(level, level_above),
        covar=next_covar(level),
        learn=next_learn(level, level_above),
    )


def next_levels(next_bottom, levels):
    """Returns a tuple of levels for the next timestep.

    next_bottom is a function of the bottom level and the one above it, such
    as the one returned by make_next_bottom. Each middle level is computed from
    the old levels immediately below and above it. The top level is used to
    update the level below it but is not remade; the same object becomes the
    new top.
    """
    levels = tuple(levels)
    if len(levels) < 2:
        raise StackError(f"A stack needs at least a bottom and a top level, got {len(levels)}")
    logger.debug("advancing %d-level stack", len(levels))

    bottom = next_bottom(levels[0], levels[1])
    middle = [next_level(*levels[i - 1:i + 2]) for i in range(1, len(levels) - 1)]
    return (bottom, *middle, levels[-1])


def make_next_bottom(hypoth_generator):
    """Returns a function like next_level for the bottom level.

    The new hypoth comes from calling hypoth_generator, which represents
    sensory input from outside the system, rather than from the error of a
    level below. error, covar and learn are updated in the usual way
    (cf. eq. (14) in Bogacz). gen_prime is never needed at the bottom.
    """
    def next_bottom(level, level_above):
        return level.replace(
            hypoth=hypoth_generator(),
            error=next_error(level, level_above),
            covar=next_covar(level),
            learn=next_learn(level, level_above),
        )

    return next_bottom


def make_top_level(hypoth):
    """Makes a top level with constant hypoth and gen set to the identity.

    The level below uses gen to compute its error. Other fields stay None:
    the top level is never passed to the update rules.
    """
    return Level(hypoth=hypoth, gen=identity)


def level_energy(level):
    """Free energy term for one level: 0.5 * (error' covar error + log|covar|).

    At equilibrium error = covar^-1 (hypoth - mean), so the first term equals
    the precision-weighted squared prediction error.
    """
    covar = level.covar.reshape(1, 1) if level.covar.shape == (1,) else level.covar
    weighted = mmul(level.error, mmul(covar, level.error))
    if covar.ndim == 0:
        logdet = jnp.log(covar)
    else:
        _, logdet = jnp.linalg.slogdet(covar)
    return 0.5 * (weighted + logdet)


def free_energy(levels):
    """Sum of level_energy over every level but the top."""
    return sum(float(level_energy(level)) for level in tuple(levels)[:-1])
