"""Read-only views of levels for display and logging."""

import logging
from dataclasses import fields

import jax

NUMERIC_FIELDS = ("hypoth", "error", "covar", "learn")


def _plain(value):
    if isinstance(value, jax.Array):
        # tolist gives a float for rank 0 and nested lists otherwise
        return value.tolist()
    return value


def fmt_level(level):
    """Returns a dict of the level's fields with arrays as plain lists/floats."""
    return {f.name: _plain(getattr(level, f.name)) for f in fields(level)}


def fmt_levels(levels):
    return [fmt_level(level) for level in levels]


def log_levels(levels, logger=None, level=logging.DEBUG):
    """Logs the numeric fields of each level, bottom first."""
    logger = logger or logging.getLogger(__name__)
    if not logger.isEnabledFor(level):
        return
    for i, lvl in enumerate(levels):
        values = ", ".join(
            f"{name}={_plain(getattr(lvl, name))}"
            for name in NUMERIC_FIELDS
            if getattr(lvl, name) is not None
        )
        logger.log(level, "level %d: %s", i, values)
