"""Deterministic random number generation for Cityrade.

Every random draw made by the world scheduler is seeded from world state
(world seed, tick, context) so that:
- Reproducibility: the same seed always produces the same results
- Bug reproduction: a world can be replayed tick by tick
- Independence: each city gets its own stream, so tick order does not matter

Examples:
    >>> seed = generate_seed(world_seed=7, tick=42, context="population:abc")
    >>> seed
    '7:42:population:abc'
    >>> rng = seeded_random(seed)
    >>> 0.0 <= rng.random() < 1.0
    True
"""

import hashlib
import random


def generate_seed(world_seed: int, tick: int, context: str) -> str:
    """Generate a deterministic seed string from world state.

    Format: "world_seed:tick:context"

    Args:
        world_seed: Seed stored on the world (unique per save)
        tick: Current world tick (increments every step)
        context: What the draw is for (e.g., 'population:<city id>')

    Returns:
        Seed string in the format "world_seed:tick:context"

    Raises:
        ValueError: If world_seed or tick is negative
    """
    if world_seed < 0:
        raise ValueError(f"world_seed must be non-negative, got {world_seed}")
    if tick < 0:
        raise ValueError(f"tick must be non-negative, got {tick}")

    return f"{world_seed}:{tick}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


def seeded_random(seed: str) -> random.Random:
    """Return an independent ``random.Random`` stream for ``seed``.

    The string is hashed rather than passed to ``random.Random`` directly so
    the stream does not depend on ``PYTHONHASHSEED``.
    """
    return random.Random(_seed_to_int(seed))


def random_uniform(seed: str) -> float:
    """Draw a single uniform value in [0, 1) for ``seed``.

    Examples:
        >>> random_uniform("1:1:test") == random_uniform("1:1:test")
        True
    """
    return seeded_random(seed).random()
