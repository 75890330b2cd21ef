import logging
import time
import jax

jax.config.update("jax_enable_x64", True)

from tqdm import tqdm
import jax.numpy as jnp
from predictive_hierarchy import (Level, CovarLimit, make_next_bottom, make_top_level,
                                  next_levels, free_energy, fmt_levels, log_levels)


def make_noisy_input(mean, stddev, seed=0):
    """Returns a 0-argument sensory input generator drawing mean + stddev * N(0, 1)."""
    key = jax.random.PRNGKey(seed)
    mean = jnp.asarray(mean, dtype=float)

    def generate():
        nonlocal key
        key, subkey = jax.random.split(key)
        return mean + stddev * jax.random.normal(subkey, jnp.shape(mean))

    return generate


def scalar_stack():
    dts = dict(hypoth_dt=0.01, error_dt=0.01, covar_dt=0.01, learn_dt=0.01)
    bottom = Level(hypoth=3.0, error=0.1, covar=1.0, learn=1.0,
                   gen=jnp.tanh, gen_prime=lambda x: 1 - jnp.tanh(x) ** 2, **dts)
    middle = Level(hypoth=1.0, error=0.1, covar=1.0, learn=1.0,
                   gen=jnp.tanh, gen_prime=lambda x: 1 - jnp.tanh(x) ** 2, **dts)
    top = make_top_level(2.0)
    return [bottom, middle, top]


def vector_stack(k=3):
    dts = dict(hypoth_dt=0.01, error_dt=0.01, covar_dt=0.001, learn_dt=0.001)
    limit = CovarLimit(matrix_policy="eigenvalues", matrix_min=0.5)
    ones = jnp.ones(k)
    eye = jnp.eye(k)
    bottom = Level(hypoth=ones, error=0.1 * ones, covar=eye, learn=eye,
                   gen=lambda x: x, gen_prime=jnp.ones_like, covar_limit=limit, **dts)
    middle = Level(hypoth=0.5 * ones, error=0.1 * ones, covar=eye, learn=eye,
                   gen=lambda x: x, gen_prime=jnp.ones_like, covar_limit=limit, **dts)
    top = make_top_level(jnp.zeros(k))
    return [bottom, middle, top]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    n_iterations = 5000  # Number of timesteps

    for name, levels, sensory_mean in [("scalar", scalar_stack(), 3.0),
                                       ("vector", vector_stack(), jnp.array([1.0, 2.0, 3.0]))]:
        next_bottom = make_next_bottom(make_noisy_input(sensory_mean, 0.5))
        energies = []
        strt_time = time.time()
        for i in tqdm(range(n_iterations), desc=name):
            levels = next_levels(next_bottom, levels)
            if i % 100 == 0:
                energies.append(free_energy(levels))

        print(f"Avg step time ({name}): {(time.time() - strt_time) / n_iterations * 1000:.6f} ms")
        print("Final energy:", energies[-1])
        log_levels(levels, level=logging.INFO)
        print(fmt_levels(levels)[1])
