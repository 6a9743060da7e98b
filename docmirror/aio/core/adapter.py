"""Async database adapter abstraction.

Defines how a concrete document database is adapted to the walkers.
Key feature: children are streamed through an AsyncIterator, so a large
collection never has to be held in memory as node objects at once.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Optional, Set

from ...address import Address
from .node import AsyncMirrorNode, CollectionNode, DatabaseRootNode, DocumentNode


class AsyncDatabaseAdapter(ABC):
    """Abstract base class for async database adapters.

    Adapters bridge between the walkers and a specific database client.
    The walkers never touch the client directly, which lets a run use any
    number of independent source and destination databases.
    """

    def __init__(self):
        self._capabilities = self._define_capabilities()

    def root(self) -> DatabaseRootNode:
        """Node for the database itself."""
        return DatabaseRootNode()

    @abstractmethod
    async def get_children(self, node: AsyncMirrorNode) -> AsyncIterator[AsyncMirrorNode]:
        """Get children of a node as an async stream.

        - root: the root collections (CollectionNode)
        - collection: its documents (DocumentNode)
        - document: its sub-collections (CollectionNode)

        Args:
            node: Parent node

        Yields:
            Child nodes one at a time
        """
        pass

    @abstractmethod
    async def read_fields(self, node: DocumentNode) -> Dict[str, Any]:
        """Read a document's field map.

        Values are expressed in the docmirror value model (datetime,
        bytes, GeoPoint, Reference, plain JSON types).
        """
        pass

    @abstractmethod
    async def write_document(self, address: Address, fields: Dict[str, Any]) -> None:
        """Create or overwrite the document at ``address`` with ``fields``.

        Raises:
            DatabaseWriteError: if the database rejects the write
        """
        pass

    # Optional methods with default implementations

    async def get_parent(self, node: AsyncMirrorNode) -> Optional[AsyncMirrorNode]:
        """Get parent of a node, derived from its address.

        The returned node carries no handle.
        """
        parent = node.address.parent
        if parent is None:
            return None
        if parent.is_root:
            return self.root()
        if parent.is_collection:
            return CollectionNode(parent)
        return DocumentNode(parent)

    async def get_depth(self, node: AsyncMirrorNode) -> int:
        """Depth of node in tree (root collections have depth 1)."""
        return node.address.depth

    def supports_capability(self, capability: str) -> bool:
        return capability in self._capabilities

    def _define_capabilities(self) -> Set[str]:
        """Define adapter capabilities.

        Override in subclasses to declare supported features.
        """
        return {
            'get_children',
            'read_fields',
            'write_document',
            'streaming',
        }

    async def get_stats(self) -> dict:
        """Get adapter statistics."""
        return {
            'capabilities': sorted(self._capabilities),
        }

    async def close(self):
        """Clean up adapter resources.

        Override if adapter needs cleanup (close connections, etc.)
        """
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
