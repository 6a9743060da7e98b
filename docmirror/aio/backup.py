"""Top-down backup of a live database into a filesystem mirror.

The walker is a small state machine over the three node kinds:

- root: list the root collections and back up each one;
- collection: create its directory, list its documents, back up each one;
- document: write its artifact, list its sub-collections, back up each one.

Every list of children is handed to run_sequential(), so nothing runs
concurrently and the progress log reads as a depth-first trace.

Failure policy: fail-fast by default. The first failing node is logged
with its address and the error propagates up through every enclosing
sequence, so a failed backup is truncated from the failure point onward
rather than "complete except one node". A ContinueOnErrorsPolicy may be
passed instead to skip failed nodes and continue with their siblings.
"""

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..address import Address
from ..codec import PathCodec
from ..errors import MirrorError
from ..serializer import ArtifactSerializer
from .adapters.filesystem import AsyncFileSystemAdapter
from .core import AsyncDatabaseAdapter, AsyncMirrorNode, CollectionNode, DocumentNode
from .error_policies import ErrorPolicy, FailFastPolicy
from .sequential import Operation, run_sequential

logger = logging.getLogger(__name__)


@dataclass
class BackupReport:
    """What a backup run did."""

    collections: int = 0
    documents: int = 0
    replicated: int = 0
    failures: List[Tuple[Address, MirrorError]] = field(default_factory=list)
    replication_failures: List[Tuple[Address, MirrorError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class BackupWalker:
    """Materializes a database tree on disk.

    Example:
        async with FirestoreAdapter.from_service_account(key) as source:
            report = await BackupWalker(source, '/backups/prod').run()
    """

    def __init__(
        self,
        database: AsyncDatabaseAdapter,
        mirror_root: Union[str, Path],
        filesystem: Optional[AsyncFileSystemAdapter] = None,
        serializer: Optional[ArtifactSerializer] = None,
        codec: Optional[PathCodec] = None,
        replica: Optional[AsyncDatabaseAdapter] = None,
        collection: Optional[str] = None,
        policy: Optional[ErrorPolicy] = None
    ):
        """Initialize backup walker.

        Args:
            database: Source database
            mirror_root: Directory the mirror is written to
            filesystem: Filesystem collaborator (default AsyncFileSystemAdapter)
            serializer: Artifact serializer (default compact)
            codec: Path codec (default '.json' artifacts)
            replica: Optional destination database every document is also
                written to; replication failures are logged, never fatal
            collection: Only back up this root collection
            policy: Error policy for every sequence (default FailFastPolicy)
        """
        self.database = database
        self.mirror_root = Path(mirror_root)
        self.filesystem = filesystem or AsyncFileSystemAdapter()
        self.serializer = serializer or ArtifactSerializer()
        self.codec = codec or PathCodec()
        self.replica = replica
        self.collection = collection
        self.policy = policy or FailFastPolicy()
        self.report = BackupReport()

    async def run(self) -> BackupReport:
        """Back up the whole database (or the selected root collection).

        Raises:
            MirrorError: the first failure, under the fail-fast policy
        """
        await self.filesystem.ensure_directory(self.mirror_root)
        root = self.database.root()
        try:
            collections = [
                child async for child in self.database.get_children(root)
                if self.collection is None or child.address.id == self.collection
            ]
        except MirrorError as exc:
            self._record_failure(root, exc)
            raise

        if self.collection is not None and not collections:
            logger.warning("Collection '%s' not found, nothing to back up", self.collection)

        await self._run_children(collections)
        return self.report

    async def backup_collection(self, node: CollectionNode) -> None:
        """Create the collection's directory and back up its documents."""
        logger.info("Backing up Collection '%s'", node.address)
        try:
            await self.filesystem.ensure_directory(self.codec.encode(node.address, self.mirror_root))
            documents = [child async for child in self.database.get_children(node)]
        except MirrorError as exc:
            self._record_failure(node, exc)
            raise

        self.report.collections += 1
        await self._run_children(documents)

    async def backup_document(self, node: DocumentNode) -> None:
        """Write the document's artifact and back up its sub-collections."""
        logger.info("Backing up Document '%s'", node.address)
        artifact_path = self.codec.encode(node.address, self.mirror_root)
        try:
            fields = await self.database.read_fields(node)
            data = self.serializer.to_artifact(fields)
            await self.filesystem.ensure_directory(artifact_path.parent)
            await self.filesystem.write_file(artifact_path, data)
        except MirrorError as exc:
            self._record_failure(node, exc)
            raise

        self.report.documents += 1
        # The snapshot's field map is no longer needed once written
        node.fields = None

        if self.replica is not None:
            await self._replicate(node.address, fields)

        try:
            collections = [child async for child in self.database.get_children(node)]
        except MirrorError as exc:
            self._record_failure(node, exc)
            raise

        await self._run_children(collections)

    async def _run_children(self, children: List[AsyncMirrorNode]) -> None:
        operations = [self._operation_for(child) for child in children]
        await run_sequential(operations, self.policy)

    def _operation_for(self, node: AsyncMirrorNode) -> Operation:
        if isinstance(node, DocumentNode):
            return Operation('backup_document', functools.partial(self.backup_document, node), node.address)
        return Operation('backup_collection', functools.partial(self.backup_collection, node), node.address)

    async def _replicate(self, address: Address, fields: Dict[str, Any]) -> None:
        logger.info("Restoring to collection %s document %s", address.parent.path, address.id)
        try:
            await self.replica.write_document(address, fields)
        except MirrorError as exc:
            logger.error(
                "Error! Restoring to collection %s document %s - %s",
                address.parent.path, address.id, exc,
            )
            self.report.replication_failures.append((address, exc))
        else:
            self.report.replicated += 1

    def _record_failure(self, node: AsyncMirrorNode, error: MirrorError) -> None:
        if error.address is None:
            error.address = node.address
        logger.error("Unable to back up %s '%s': %s", node.kind, node.address, error)
        self.report.failures.append((node.address, error))
