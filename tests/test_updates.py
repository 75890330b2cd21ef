"""Tests for the per-level update rules"""

import jax.numpy as jnp
import pytest

from predictive_hierarchy import (CovarLimit, Level, ShapeMismatchError, SingularMatrixError,
                                  covar_inc, error_inc, hypoth_inc, identity, learn_inc,
                                  make_top_level, next_covar, next_error, next_hypoth,
                                  next_learn)


class TestIncrements:

    def test_hypoth_inc_scalar(self):
        inc = hypoth_inc(1.0, 0.1, 0.2, 0.5, lambda x: 2.0 * x)
        assert float(inc) == pytest.approx(2.0 * (0.5 * 0.2) - 0.1)

    def test_error_inc_scalar(self):
        inc = error_inc(0.1, 1.0, 2.0, 1.5, 0.5, identity, identity)
        assert float(inc) == pytest.approx(1.0 - 0.5 * 2.0 - 1.5 * 0.1)

    def test_covar_inc_scalar(self):
        assert float(covar_inc(0.1, 2.0)) == pytest.approx(0.5 * (0.01 - 0.5))

    def test_learn_inc_scalar(self):
        assert float(learn_inc(0.1, 2.0, lambda x: x ** 2)) == pytest.approx(0.4)

    def test_hypoth_inc_vector_uses_transposed_learn(self):
        learn_below = jnp.array([[1.0, 2.0], [0.0, 1.0]])
        error_below = jnp.array([1.0, 1.0])
        inc = hypoth_inc(jnp.zeros(2), jnp.zeros(2), error_below, learn_below, jnp.ones_like)
        assert jnp.allclose(inc, jnp.array([1.0, 3.0]))

    def test_covar_inc_vector(self):
        error = jnp.array([1.0, 2.0])
        covar = jnp.array([[2.0, 0.0], [0.0, 4.0]])
        expected = 0.5 * (jnp.array([[1.0, 2.0], [2.0, 4.0]]) - jnp.diag(jnp.array([0.5, 0.25])))
        assert jnp.allclose(covar_inc(error, covar), expected)


class TestScalarClosedForm:

    def test_next_error_reduces_to_closed_form(self, scalar_level):
        level = scalar_level(hypoth=1.3, error=0.2, covar=1.7)
        above = make_top_level(0.4)
        expected = 0.2 + 0.01 * (1.3 - 0.4 - 1.7 * 0.2)
        assert float(next_error(level, above)) == pytest.approx(expected, rel=1e-15)

    def test_next_hypoth(self, scalar_level):
        below = scalar_level(error=0.3, learn=2.0)
        level = scalar_level(hypoth=1.0, error=0.1)
        expected = 1.0 + 0.01 * (1.0 * (2.0 * 0.3) - 0.1)
        assert float(next_hypoth(below, level)) == pytest.approx(expected)

    def test_next_learn(self, scalar_level):
        level = scalar_level(error=0.1, learn=1.0)
        expected = 1.0 + 0.01 * (0.1 * 2.0)
        assert float(next_learn(level, make_top_level(2.0))) == pytest.approx(expected)

    def test_next_covar_is_clamped(self, scalar_level):
        level = scalar_level(error=0.1, covar=1.0)
        assert float(next_covar(level)) == 1.0

    def test_next_covar_above_minimum(self, scalar_level):
        level = scalar_level(error=3.0, covar=2.0)
        expected = 2.0 + 0.01 * 0.5 * (9.0 - 0.5)
        assert float(next_covar(level)) == pytest.approx(expected)

    def test_next_covar_uses_level_limit(self, scalar_level):
        level = scalar_level(error=0.1, covar=1.0, covar_limit=CovarLimit(scalar_min=0.5))
        assert float(next_covar(level)) == pytest.approx(1.0 + 0.01 * 0.5 * (0.01 - 1.0))


class TestAttention:

    def test_attn_scales_covar_and_sees_level(self, scalar_level):
        seen = []

        def attn(level, covar):
            seen.append(level)
            return 2.0 * covar

        level = scalar_level(hypoth=1.0, error=0.1, covar=1.0, attn=attn)
        result = next_error(level, make_top_level(0.5))
        assert seen == [level]
        assert float(result) == pytest.approx(0.1 + 0.01 * (1.0 - 0.5 - 2.0 * 0.1))


class TestSingularCovariance:

    def test_zero_scalar_covar(self, scalar_level):
        level = scalar_level(covar=0.0)
        with pytest.raises(SingularMatrixError):
            next_covar(level)

    def test_singular_matrix_covar(self, vector_level):
        level = vector_level(k=2, covar=jnp.array([[1.0, 2.0], [2.0, 4.0]]))
        with pytest.raises(SingularMatrixError):
            next_covar(level)


class TestVectorShapes:

    def test_shapes_preserved(self, vector_stack):
        below, level, above = vector_stack
        assert next_hypoth(below, level).shape == (3,)
        assert next_error(level, above).shape == (3,)
        assert next_covar(level).shape == (3, 3)
        assert next_learn(level, above).shape == (3, 3)

    def test_rectangular_learn_between_levels_of_different_size(self):
        level = Level(hypoth=jnp.ones(3), error=0.1 * jnp.ones(3), covar=jnp.eye(3),
                      learn=jnp.ones((3, 2)), error_dt=0.01, learn_dt=0.01)
        above = make_top_level(jnp.array([1.0, 2.0]))
        assert next_error(level, above).shape == (3,)
        assert next_learn(level, above).shape == (3, 2)

    def test_learn_does_not_fit_level_above(self, vector_level):
        level = vector_level(k=3)
        above = make_top_level(jnp.ones(2))
        with pytest.raises(ShapeMismatchError):
            next_error(level, above)
        with pytest.raises(ShapeMismatchError):
            next_learn(level, above)

    def test_scalar_level_below_vector_level(self, scalar_level, vector_level):
        with pytest.raises(ShapeMismatchError):
            next_hypoth(scalar_level(), vector_level(k=2))


class TestSingleElementCovar:

    def make_level(self, covar):
        return Level(hypoth=jnp.array([1.0]), error=jnp.array([0.1]), covar=covar,
                     learn=jnp.ones((1, 1)), gen=identity, gen_prime=jnp.ones_like,
                     hypoth_dt=0.01, error_dt=0.01, covar_dt=0.01, learn_dt=0.01)

    def test_next_covar_clamped_as_variance(self):
        level = self.make_level(jnp.array([1.0]))
        result = next_covar(level)
        assert result.shape == (1,)
        assert jnp.array_equal(result, jnp.array([1.0]))

    def test_next_covar_matches_one_by_one_form(self):
        vec = next_covar(self.make_level(jnp.array([2.0])))
        mat = next_covar(self.make_level(jnp.array([[2.0]])))
        assert jnp.allclose(vec, mat.reshape(1))
        assert float(vec[0]) == pytest.approx(2.0 + 0.01 * 0.5 * (0.01 - 0.5))

    def test_next_error(self):
        level = self.make_level(jnp.array([1.5]))
        result = next_error(level, make_top_level(jnp.array([0.5])))
        assert result.shape == (1,)
        assert float(result[0]) == pytest.approx(0.1 + 0.01 * (1.0 - 0.5 - 1.5 * 0.1))

    def test_zero_variance_is_singular(self):
        with pytest.raises(SingularMatrixError):
            next_covar(self.make_level(jnp.array([0.0])))
