"""Testing utilities for docmirror consumers."""

from .fixtures import MemoryDatabaseAdapter

__all__ = ['MemoryDatabaseAdapter']
