"""Configuration management for the anonymous poll circuit."""

from .config import (
    SystemConfig,
    CircuitConfig,
    DEFAULT_TREE_DEPTH,
    DEFAULT_CHOICE_BITS,
    load_config,
    save_config,
)

__all__ = [
    'SystemConfig',
    'CircuitConfig',
    'DEFAULT_TREE_DEPTH',
    'DEFAULT_CHOICE_BITS',
    'load_config',
    'save_config',
]
