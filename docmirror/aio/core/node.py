"""Async node abstractions for database trees.

A database tree has three kinds of nodes: the database root, collections
and documents. Nodes are transient data containers; navigation and I/O
are delegated to an AsyncDatabaseAdapter.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ...address import Address


class AsyncMirrorNode(ABC):
    """Abstract base class for nodes of a database tree.

    Every node knows its address and carries an opaque handle that only
    the adapter which produced it understands (e.g. a client reference).
    """

    kind = 'node'

    def __init__(self, address: Address, handle: Any = None):
        self.address = address
        self.handle = handle

    async def identifier(self) -> str:
        """Get unique identifier (the address path).

        Returns:
            Slash-joined address, '' for the root
        """
        return self.address.path

    async def metadata(self) -> Dict[str, Any]:
        """Get lightweight metadata for progress and error reporting."""
        return {
            'kind': self.kind,
            'address': self.address,
            'id': self.address.id,
            'depth': self.address.depth,
        }

    @abstractmethod
    def is_leaf(self) -> bool:
        """Check if this node can never have children."""
        pass

    async def display_name(self) -> str:
        return str(self.address)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.address.path!r})"


class DatabaseRootNode(AsyncMirrorNode):
    """The database itself; its children are the root collections."""

    kind = 'root'

    def __init__(self, handle: Any = None):
        super().__init__(Address.root(), handle)

    def is_leaf(self) -> bool:
        return False


class CollectionNode(AsyncMirrorNode):
    """A collection; its children are documents."""

    kind = 'collection'

    def __init__(self, address: Address, handle: Any = None):
        if not address.is_collection:
            raise ValueError(f"Not a collection address: {address!r}")
        super().__init__(address, handle)

    @property
    def id(self) -> str:
        return self.address.id

    def is_leaf(self) -> bool:
        return False


class DocumentNode(AsyncMirrorNode):
    """A document; its children are its sub-collections.

    Adapters that receive the field map together with the document
    (e.g. from a query snapshot) pass it as ``fields`` so it is not
    fetched a second time.
    """

    kind = 'document'

    def __init__(
        self,
        address: Address,
        handle: Any = None,
        fields: Optional[Dict[str, Any]] = None
    ):
        if not address.is_document:
            raise ValueError(f"Not a document address: {address!r}")
        super().__init__(address, handle)
        self.fields = fields

    @property
    def id(self) -> str:
        return self.address.id

    @property
    def collection_address(self) -> Address:
        return self.address.parent

    def is_leaf(self) -> bool:
        # Sub-collections are only known after asking the adapter
        return False
