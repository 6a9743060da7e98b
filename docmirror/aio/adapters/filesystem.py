"""Async filesystem adapter for the mirror tree.

Wraps the blocking filesystem primitives the walkers need (recursive
directory creation, artifact writes and reads, directory listing) and runs
them through asyncio.to_thread so the event loop is never blocked.
Failures surface as docmirror errors naming the path involved.
"""

import asyncio
import os
import stat as stat_module  # To avoid name collision with stat results
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from ...errors import ArtifactReadError, ArtifactWriteError, PathCreationError

PathLike = Union[str, Path]


class AsyncFileSystemNode:
    """A file or directory inside the mirror.

    Keeps the DirEntry produced by os.scandir so the file/directory check
    costs no extra stat call.
    """

    def __init__(self, path: PathLike, *, entry: Optional[os.DirEntry] = None):
        self.path = Path(path)
        self._entry = entry
        self._stat_cache: Optional[os.stat_result] = None

    async def identifier(self) -> str:
        """Get unique identifier (absolute path)."""
        return str(self.path.absolute())

    @property
    def name(self) -> str:
        return self.path.name

    def is_dir(self, follow_symlinks: bool = False) -> bool:
        if self._entry is not None:
            return self._entry.is_dir(follow_symlinks=follow_symlinks)
        return self.path.is_dir()

    def is_file(self, follow_symlinks: bool = False) -> bool:
        if self._entry is not None:
            return self._entry.is_file(follow_symlinks=follow_symlinks)
        return self.path.is_file()

    def is_leaf(self) -> bool:
        """Files are leaves; directories may have children."""
        return not self.is_dir()

    async def metadata(self) -> Dict[str, Any]:
        """Get file/directory metadata.

        Returns:
            Dictionary with path, name, type and size
        """
        stat = await self._get_stat()
        metadata = {
            'path': str(self.path),
            'name': self.path.name,
            'exists': stat is not None,
        }
        if stat is not None:
            metadata.update({
                'type': 'directory' if stat_module.S_ISDIR(stat.st_mode) else 'file',
                'size': stat.st_size,
                'modified_time': stat.st_mtime,
            })
        else:
            metadata['type'] = 'unknown'
        return metadata

    async def _get_stat(self) -> Optional[os.stat_result]:
        if self._stat_cache is not None:
            return self._stat_cache
        try:
            if self._entry is not None:
                self._stat_cache = self._entry.stat()
            else:
                self._stat_cache = await asyncio.to_thread(self.path.stat)
        except OSError:
            return None
        return self._stat_cache

    def __repr__(self) -> str:
        return f"AsyncFileSystemNode({self.path})"


class AsyncFileSystemAdapter:
    """Filesystem collaborator of the backup and restore walkers."""

    def __init__(self, follow_symlinks: bool = False):
        """Initialize filesystem adapter.

        Args:
            follow_symlinks: Whether symlinked files and directories take part
        """
        self.follow_symlinks = follow_symlinks
        self.stats = {
            'directories_created': 0,
            'files_written': 0,
            'files_read': 0,
            'directories_listed': 0,
        }

    async def ensure_directory(self, path: PathLike) -> Path:
        """Create a directory and its parents; an existing directory is fine.

        Raises:
            PathCreationError: if the directory cannot be created (including
                when a file already occupies the path)
        """
        path = Path(path)
        try:
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise PathCreationError("Unable to create directory", path=path) from exc
        self.stats['directories_created'] += 1
        return path

    async def write_file(self, path: PathLike, data: bytes) -> Path:
        """Write (or overwrite) a file.

        Raises:
            ArtifactWriteError: if the file cannot be written
        """
        path = Path(path)
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            raise ArtifactWriteError("Unable to write file", path=path) from exc
        self.stats['files_written'] += 1
        return path

    async def read_file(self, path: PathLike) -> bytes:
        """Read a whole file.

        Raises:
            ArtifactReadError: if the file cannot be read
        """
        path = Path(path)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise ArtifactReadError("Unable to read file", path=path) from exc
        self.stats['files_read'] += 1
        return data

    async def is_directory(self, path: PathLike) -> bool:
        return await asyncio.to_thread(Path(path).is_dir)

    async def get_children(
        self,
        node: AsyncFileSystemNode
    ) -> AsyncIterator[AsyncFileSystemNode]:
        """Get the entries of a directory, sorted by name.

        Uses os.scandir so each child carries its DirEntry. Errors are not
        swallowed here; the caller's error policy decides what happens.

        Args:
            node: Directory node

        Yields:
            Child nodes (files and subdirectories)

        Raises:
            ArtifactReadError: if the directory cannot be listed
        """
        def _scan_directory_sync(path: Path) -> List[os.DirEntry]:
            with os.scandir(path) as iterator:
                return sorted(iterator, key=lambda entry: entry.name)

        try:
            entries = await asyncio.to_thread(_scan_directory_sync, node.path)
        except OSError as exc:
            raise ArtifactReadError("Unable to list directory", path=node.path) from exc
        self.stats['directories_listed'] += 1

        for entry in entries:
            # Check symlink policy
            if not self.follow_symlinks and entry.is_symlink():
                continue
            yield AsyncFileSystemNode(Path(entry.path), entry=entry)

    async def get_parent(self, node: AsyncFileSystemNode) -> Optional[AsyncFileSystemNode]:
        parent_path = node.path.parent
        if parent_path == node.path:
            return None
        return AsyncFileSystemNode(parent_path)

    async def get_stats(self) -> dict:
        stats = dict(self.stats)
        stats['follow_symlinks'] = self.follow_symlinks
        return stats

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
