"""Async adapters for databases and the mirror filesystem.

This module contains adapters that bridge specific data sources
(the local filesystem, Google Cloud Firestore) to the walkers.
"""

from .filesystem import (
    AsyncFileSystemNode,
    AsyncFileSystemAdapter,
)
from .firestore import FirestoreAdapter

__all__ = [
    'AsyncFileSystemNode',
    'AsyncFileSystemAdapter',
    'FirestoreAdapter',
]
