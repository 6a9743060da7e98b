"""Replay of a filesystem mirror into a database.

Restoring happens in two phases:

1. Discovery walks the mirror depth-first. Every regular file is decoded
   into its document address, read and parsed into a RestoreItem. Nothing
   is written yet; the items form one flat list in discovery order.
2. Execution hands that list to run_sequential(), which writes the
   documents one at a time.

Failure policy: continue-on-error. An undecodable path, an unreadable or
unparsable artifact, or a rejected write is logged with the identifiers of
the document and recorded in the RestoreReport, and the run moves on.
This is deliberately the opposite of the backup's fail-fast default. Only
a mirror root that cannot be read at all stops the restore.
"""

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..address import Address
from ..codec import PathCodec
from ..errors import ArtifactReadError, MirrorError
from ..serializer import ArtifactSerializer
from .adapters.filesystem import AsyncFileSystemAdapter, AsyncFileSystemNode
from .core import AsyncDatabaseAdapter
from .error_policies import ContinueOnErrorsPolicy, ErrorPolicy
from .sequential import Operation, run_sequential

logger = logging.getLogger(__name__)


@dataclass
class RestoreItem:
    """One document waiting to be written."""

    address: Address
    fields: Dict[str, Any]
    path: Optional[Path] = None

    @property
    def collection_path(self) -> str:
        return self.address.parent.path

    @property
    def document_id(self) -> str:
        return self.address.document_id


@dataclass
class RestoreFailure:
    """A file that could not be loaded or a document that could not be written."""

    error: Exception
    address: Optional[Address] = None
    path: Optional[Path] = None


@dataclass
class RestoreReport:
    """What a restore run did."""

    discovered: int = 0
    written: List[Address] = field(default_factory=list)
    failures: List[RestoreFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.written) + sum(1 for failure in self.failures if failure.address is not None)

    @property
    def ok(self) -> bool:
        return not self.failures


class RestoreWalker:
    """Writes every artifact of a mirror back into a database."""

    def __init__(
        self,
        database: AsyncDatabaseAdapter,
        mirror_root: Union[str, Path],
        filesystem: Optional[AsyncFileSystemAdapter] = None,
        serializer: Optional[ArtifactSerializer] = None,
        codec: Optional[PathCodec] = None,
        collection: Optional[str] = None,
        policy: Optional[ErrorPolicy] = None
    ):
        """Initialize restore walker.

        Args:
            database: Destination database
            mirror_root: Root directory of the mirror
            filesystem: Filesystem collaborator (default AsyncFileSystemAdapter)
            serializer: Artifact serializer
            codec: Path codec (default '.json' artifacts)
            collection: Only restore documents below this root collection
            policy: Error policy for the write sequence
                (default ContinueOnErrorsPolicy without extra logging)
        """
        self.database = database
        self.mirror_root = Path(mirror_root)
        self.filesystem = filesystem or AsyncFileSystemAdapter()
        self.serializer = serializer or ArtifactSerializer()
        self.codec = codec or PathCodec()
        self.collection = collection
        self.policy = policy or ContinueOnErrorsPolicy(verbose=False)
        self.report = RestoreReport()

    async def run(self) -> RestoreReport:
        """Discover every artifact, then write them all in order.

        Raises:
            ArtifactReadError: if the mirror root cannot be read
        """
        items = await self.discover()
        await self.restore(items)
        logger.info(
            "Restore finished: %d written, %d failed",
            len(self.report.written), len(self.report.failures),
        )
        return self.report

    async def discover(self) -> List[RestoreItem]:
        """Collect a RestoreItem for every artifact below the mirror root.

        Raises:
            ArtifactReadError: if the mirror root is missing or unreadable
        """
        if not await self.filesystem.is_directory(self.mirror_root):
            raise ArtifactReadError("Mirror root is not a directory", path=self.mirror_root)

        items: List[RestoreItem] = []
        await self._discover_directory(AsyncFileSystemNode(self.mirror_root), items, is_root=True)
        self.report.discovered = len(items)
        return items

    async def restore(self, items: List[RestoreItem]) -> RestoreReport:
        """Write the given items one after another."""
        operations = [
            Operation('write_document', functools.partial(self._write, item), item.address)
            for item in items
        ]
        sequence = await run_sequential(operations, self.policy)

        for item, outcome in zip(items, sequence.outcomes):
            if outcome.ok:
                self.report.written.append(item.address)
            else:
                self.report.failures.append(
                    RestoreFailure(error=outcome.error, address=item.address, path=item.path)
                )
        return self.report

    async def _discover_directory(
        self,
        node: AsyncFileSystemNode,
        items: List[RestoreItem],
        is_root: bool = False
    ) -> None:
        try:
            children = [child async for child in self.filesystem.get_children(node)]
        except ArtifactReadError as exc:
            if is_root:
                raise
            self._record_failure(exc, path=node.path)
            return

        follow_symlinks = self.filesystem.follow_symlinks
        for child in children:
            if child.is_dir(follow_symlinks=follow_symlinks):
                await self._discover_directory(child, items)
                continue
            # FIFOs, sockets and devices are never opened
            if not child.is_file(follow_symlinks=follow_symlinks):
                self._record_failure(
                    ArtifactReadError("Not a regular file", path=child.path), path=child.path
                )
                continue
            item = await self._load(child)
            if item is not None:
                items.append(item)

    async def _load(self, node: AsyncFileSystemNode) -> Optional[RestoreItem]:
        address = None
        try:
            address = self.codec.decode(node.path, self.mirror_root)
            if self.collection is not None and address[0] != self.collection:
                logger.debug("Skipping '%s' outside collection '%s'", node.path, self.collection)
                return None
            data = await self.filesystem.read_file(node.path)
            fields = self.serializer.from_artifact(data)
        except MirrorError as exc:
            if exc.path is None:
                exc.path = node.path
            self._record_failure(exc, path=node.path)
            return None
        return RestoreItem(address=address, fields=fields, path=node.path)

    async def _write(self, item: RestoreItem) -> None:
        logger.info("Restoring to collection %s document %s", item.collection_path, item.document_id)
        try:
            await self.database.write_document(item.address, item.fields)
        except Exception as exc:
            logger.error(
                "Error! Restoring to collection %s document %s - %s",
                item.collection_path, item.document_id, exc,
            )
            raise

    def _record_failure(self, error: Exception, path: Path) -> None:
        logger.warning("Skipping '%s': %s", path, error)
        self.report.failures.append(RestoreFailure(error=error, path=path))
