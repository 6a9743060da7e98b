"""Core abstractions for async database traversal.

This module defines the node types and the adapter interface that the
backup and restore walkers are written against.
"""

from .node import (
    AsyncMirrorNode,
    DatabaseRootNode,
    CollectionNode,
    DocumentNode,
)
from .adapter import AsyncDatabaseAdapter

__all__ = [
    # Nodes
    'AsyncMirrorNode',
    'DatabaseRootNode',
    'CollectionNode',
    'DocumentNode',
    # Adapter
    'AsyncDatabaseAdapter',
]
