import jax
import jax.numpy as jnp
import pytest

jax.config.update("jax_enable_x64", True)

from predictive_hierarchy import Level, identity, make_top_level

DTS = dict(hypoth_dt=0.01, error_dt=0.01, covar_dt=0.01, learn_dt=0.01)


def _scalar_level(hypoth=1.0, error=0.1, covar=1.0, learn=1.0, **kwargs):
    params = dict(DTS, gen=identity, gen_prime=identity)
    params.update(kwargs)
    return Level(hypoth=hypoth, error=error, covar=covar, learn=learn, **params)


def _vector_level(k=3, hypoth=1.0, error=0.1, **kwargs):
    params = dict(DTS, gen=identity, gen_prime=jnp.ones_like)
    params.update(kwargs)
    params.setdefault("covar", jnp.eye(k))
    params.setdefault("learn", jnp.eye(k))
    return Level(hypoth=hypoth * jnp.ones(k), error=error * jnp.ones(k), **params)


@pytest.fixture
def scalar_level():
    return _scalar_level


@pytest.fixture
def vector_level():
    return _vector_level


@pytest.fixture
def scalar_stack():
    """bottom, middle, top with the values of the worked single-step example."""
    return [_scalar_level(hypoth=0.5), _scalar_level(hypoth=1.0), make_top_level(2.0)]


@pytest.fixture
def vector_stack():
    return [_vector_level(hypoth=2.0), _vector_level(hypoth=1.0),
            make_top_level(jnp.array([0.5, 1.0, 1.5]))]
