"""Test fixtures for docmirror consumers.

MemoryDatabaseAdapter is a complete in-memory database behind the
AsyncDatabaseAdapter interface. It lets backups and restores run without
a network connection, records every write and can be told to fail.
"""

import asyncio
import copy
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..address import Address
from ..aio.core import (
    AsyncDatabaseAdapter,
    AsyncMirrorNode,
    CollectionNode,
    DatabaseRootNode,
    DocumentNode,
)
from ..errors import DatabaseReadError, DatabaseWriteError

AddressLike = Union[str, Address, Iterable[str]]


def _as_address(value: AddressLike) -> Address:
    if isinstance(value, Address):
        return value
    if isinstance(value, str):
        return Address.from_path(value)
    return Address(value)


class MemoryDatabaseAdapter(AsyncDatabaseAdapter):
    """In-memory document database.

    Documents are kept in insertion order; collections exist implicitly
    while they hold at least one document (as in Firestore).

    Example:
        db = MemoryDatabaseAdapter({
            'A/d1': {'name': 'one'},
            'A/d1/B/d3': {'name': 'three'},
            'A/d2': {'name': 'two'},
        })
    """

    def __init__(
        self,
        documents: Optional[Dict[AddressLike, Dict[str, Any]]] = None,
        fail_writes: Iterable[AddressLike] = (),
        fail_reads: Iterable[AddressLike] = (),
        write_hook: Optional[Callable[[Address, Dict[str, Any]], Any]] = None
    ):
        """Initialize the in-memory database.

        Args:
            documents: Initial documents keyed by path ('A/d1') or address
            fail_writes: Addresses whose writes raise DatabaseWriteError
            fail_reads: Addresses whose listing or reading raises DatabaseReadError
            write_hook: Called with (address, fields) before every write
        """
        super().__init__()
        self._documents: Dict[Address, Dict[str, Any]] = {}
        for key, fields in (documents or {}).items():
            self.add_document(key, fields)
        self.fail_writes = {_as_address(item) for item in fail_writes}
        self.fail_reads = {_as_address(item) for item in fail_reads}
        self.write_hook = write_hook
        self.writes: List[Tuple[Address, Dict[str, Any]]] = []

    def add_document(self, address: AddressLike, fields: Dict[str, Any]) -> Address:
        address = _as_address(address)
        if not address.is_document:
            raise ValueError(f"Not a document address: {address!r}")
        self._documents[address] = copy.deepcopy(fields)
        return address

    def get(self, address: AddressLike) -> Optional[Dict[str, Any]]:
        """Stored fields of a document, or None."""
        return self._documents.get(_as_address(address))

    @property
    def documents(self) -> Dict[Address, Dict[str, Any]]:
        return dict(self._documents)

    def _child_ids(self, parent: Address) -> List[str]:
        """Distinct next segments below ``parent``, in insertion order."""
        depth = parent.depth
        seen: Dict[str, None] = {}
        for address in self._documents:
            if address.depth > depth and address.segments[:depth] == parent.segments:
                seen.setdefault(address.segments[depth], None)
        return list(seen)

    async def get_children(self, node: AsyncMirrorNode) -> AsyncIterator[AsyncMirrorNode]:
        if node.address in self.fail_reads:
            raise DatabaseReadError("Simulated read failure", address=node.address)

        for child_id in self._child_ids(node.address):
            # Simulate async I/O
            await asyncio.sleep(0)
            child = node.address.child(child_id)
            if isinstance(node, CollectionNode):
                # Only documents that exist themselves, not mere path prefixes
                if child in self._documents:
                    yield DocumentNode(child, handle=self)
            elif isinstance(node, (DatabaseRootNode, DocumentNode)):
                yield CollectionNode(child, handle=self)

    async def read_fields(self, node: DocumentNode) -> Dict[str, Any]:
        if node.address in self.fail_reads:
            raise DatabaseReadError("Simulated read failure", address=node.address)
        await asyncio.sleep(0)
        fields = node.fields if node.fields is not None else self._documents.get(node.address)
        if fields is None:
            raise DatabaseReadError("Document does not exist", address=node.address)
        return copy.deepcopy(fields)

    async def write_document(self, address: Address, fields: Dict[str, Any]) -> None:
        if self.write_hook is not None:
            result = self.write_hook(address, fields)
            if asyncio.iscoroutine(result):
                await result
        await asyncio.sleep(0)
        if address in self.fail_writes:
            raise DatabaseWriteError("Simulated write failure", address=address)
        self.writes.append((address, copy.deepcopy(fields)))
        self._documents[address] = copy.deepcopy(fields)

    async def get_stats(self) -> dict:
        stats = await super().get_stats()
        stats.update({
            'documents': len(self._documents),
            'writes': len(self.writes),
        })
        return stats
