"""Utility functions for the Cityrade simulation."""

from cityrade.utils.rng import (
    generate_seed,
    random_uniform,
    seeded_random,
)

__all__ = [
    "generate_seed",
    "random_uniform",
    "seeded_random",
]
