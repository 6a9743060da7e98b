"""High-level async API for docmirror.

Simple functions for the common operations. Database handles are always
passed in, so any number of independent source/destination pairs can be
mirrored in one process.
"""

from pathlib import Path
from typing import Callable, Optional, Union

from ..codec import DEFAULT_EXTENSION, PathCodec
from ..config import MirrorConfig, MirrorMode
from ..errors import ConfigurationError
from ..serializer import ArtifactSerializer
from .adapters.filesystem import AsyncFileSystemAdapter
from .adapters.firestore import FirestoreAdapter
from .backup import BackupReport, BackupWalker
from .core import AsyncDatabaseAdapter
from .error_policies import ErrorPolicy
from .restore import RestoreReport, RestoreWalker

AdapterFactory = Callable[[Path], AsyncDatabaseAdapter]


async def backup_database(
    database: AsyncDatabaseAdapter,
    mirror_root: Union[str, Path],
    pretty: bool = False,
    collection: Optional[str] = None,
    replica: Optional[AsyncDatabaseAdapter] = None,
    policy: Optional[ErrorPolicy] = None,
    extension: str = DEFAULT_EXTENSION,
    follow_symlinks: bool = False
) -> BackupReport:
    """Back up a database into a mirror directory.

    Args:
        database: Source database
        mirror_root: Mirror directory (created if missing)
        pretty: Write indented artifacts instead of compact ones
        collection: Only back up this root collection
        replica: Also write every document to this database
        policy: Error policy (fail-fast when None)
        extension: Artifact file extension
        follow_symlinks: Passed to the filesystem adapter

    Returns:
        BackupReport with node counts
    """
    codec = PathCodec(extension)
    walker = BackupWalker(
        database,
        mirror_root,
        filesystem=AsyncFileSystemAdapter(follow_symlinks=follow_symlinks),
        serializer=ArtifactSerializer(pretty=pretty, codec=codec),
        codec=codec,
        replica=replica,
        collection=collection,
        policy=policy,
    )
    return await walker.run()


async def restore_database(
    database: AsyncDatabaseAdapter,
    mirror_root: Union[str, Path],
    collection: Optional[str] = None,
    policy: Optional[ErrorPolicy] = None,
    extension: str = DEFAULT_EXTENSION,
    follow_symlinks: bool = False
) -> RestoreReport:
    """Restore every artifact of a mirror into a database.

    Args:
        database: Destination database
        mirror_root: Mirror directory
        collection: Only restore documents of this root collection
        policy: Error policy (continue-on-error when None)
        extension: Artifact file extension
        follow_symlinks: Passed to the filesystem adapter

    Returns:
        RestoreReport listing written documents and failures
    """
    codec = PathCodec(extension)
    walker = RestoreWalker(
        database,
        mirror_root,
        filesystem=AsyncFileSystemAdapter(follow_symlinks=follow_symlinks),
        serializer=ArtifactSerializer(codec=codec),
        codec=codec,
        collection=collection,
        policy=policy,
    )
    return await walker.run()


async def run_mirror(
    config: MirrorConfig,
    adapter_factory: Optional[AdapterFactory] = None
) -> Union[BackupReport, RestoreReport]:
    """Run the backup or restore described by a configuration.

    Args:
        config: Validated configuration
        adapter_factory: Builds a database adapter from a credentials path
            (default FirestoreAdapter.from_service_account)

    Raises:
        ConfigurationError: if the configuration is invalid
    """
    errors = config.validate()
    if errors:
        raise ConfigurationError(f"Invalid configuration: {', '.join(errors)}")

    if adapter_factory is None:
        adapter_factory = FirestoreAdapter.from_service_account

    mode = config.mode
    if mode == MirrorMode.RESTORE:
        async with adapter_factory(config.destination_credentials) as destination:
            return await restore_database(
                destination,
                config.backup_path,
                collection=config.collection,
                extension=config.artifact_extension,
                follow_symlinks=config.follow_symlinks,
            )

    async with adapter_factory(config.source_credentials) as source:
        if mode == MirrorMode.BACKUP_AND_REPLICATE:
            async with adapter_factory(config.destination_credentials) as destination:
                return await backup_database(
                    source,
                    config.backup_path,
                    pretty=config.pretty_print,
                    collection=config.collection,
                    replica=destination,
                    extension=config.artifact_extension,
                    follow_symlinks=config.follow_symlinks,
                )
        return await backup_database(
            source,
            config.backup_path,
            pretty=config.pretty_print,
            collection=config.collection,
            extension=config.artifact_extension,
            follow_symlinks=config.follow_symlinks,
        )
