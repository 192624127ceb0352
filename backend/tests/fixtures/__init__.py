"""
Test fixtures package.

Provides factory functions and mock implementations for testing.
"""

from .domain_fixtures import REFERENCE_NOW, SequenceSlugs, create_metadata, fixed_clock
from .mock_repositories import InMemoryStorageBackend

__all__ = [
    "REFERENCE_NOW",
    "SequenceSlugs",
    "create_metadata",
    "fixed_clock",
    "InMemoryStorageBackend",
]
