"""Configuration management for constrained HMM runs.

Provides run settings and random generator management for reproducible
sampling.
"""

from .settings import Settings, DEFAULT_CONFIG_FILE
from .random_state import (
    create_rng,
    spawn_generators,
    create_deterministic_seed,
    get_environment_seed,
    SEED_ENVIRONMENT_VARIABLE
)

__all__ = [
    'Settings',
    'DEFAULT_CONFIG_FILE',
    'create_rng',
    'spawn_generators',
    'create_deterministic_seed',
    'get_environment_seed',
    'SEED_ENVIRONMENT_VARIABLE'
]
