"""Tests for the async filesystem adapter."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

from docmirror.aio import AsyncFileSystemAdapter, AsyncFileSystemNode
from docmirror.errors import ArtifactReadError, ArtifactWriteError, PathCreationError


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestEnsureDirectory:

    @pytest.mark.asyncio
    async def test_creates_parents(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        target = temp_dir / 'a' / 'b' / 'c'
        await adapter.ensure_directory(target)
        assert target.is_dir()

    @pytest.mark.asyncio
    async def test_idempotent(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        target = temp_dir / 'Users'
        await adapter.ensure_directory(target)
        await adapter.ensure_directory(target)
        assert target.is_dir()
        assert adapter.stats['directories_created'] == 2

    @pytest.mark.asyncio
    async def test_file_in_the_way(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        blocker = temp_dir / 'blocker'
        blocker.write_text('x')
        with pytest.raises(PathCreationError) as exc_info:
            await adapter.ensure_directory(blocker / 'child')
        assert exc_info.value.path == blocker / 'child'


class TestFiles:

    @pytest.mark.asyncio
    async def test_write_and_read(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        target = temp_dir / 'd1.json'
        await adapter.write_file(target, b'{"a":1}')
        assert await adapter.read_file(target) == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_overwrite(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        target = temp_dir / 'd1.json'
        await adapter.write_file(target, b'old content')
        await adapter.write_file(target, b'new')
        assert target.read_bytes() == b'new'

    @pytest.mark.asyncio
    async def test_write_into_missing_directory(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        with pytest.raises(ArtifactWriteError):
            await adapter.write_file(temp_dir / 'missing' / 'd1.json', b'{}')

    @pytest.mark.asyncio
    async def test_read_missing_file(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        with pytest.raises(ArtifactReadError) as exc_info:
            await adapter.read_file(temp_dir / 'nope.json')
        assert exc_info.value.path == temp_dir / 'nope.json'


class TestListing:

    @pytest.mark.asyncio
    async def test_children_sorted_by_name(self, temp_dir):
        for name in ['c.json', 'a.json', 'b']:
            path = temp_dir / name
            if name.endswith('.json'):
                path.write_text('{}')
            else:
                path.mkdir()

        adapter = AsyncFileSystemAdapter()
        children = [child async for child in adapter.get_children(AsyncFileSystemNode(temp_dir))]

        assert [child.name for child in children] == ['a.json', 'b', 'c.json']
        assert children[1].is_dir()
        assert children[0].is_file()
        assert children[0].is_leaf()

    @pytest.mark.asyncio
    async def test_missing_directory(self, temp_dir):
        adapter = AsyncFileSystemAdapter()
        with pytest.raises(ArtifactReadError):
            async for _ in adapter.get_children(AsyncFileSystemNode(temp_dir / 'missing')):
                pass

    @pytest.mark.skipif(sys.platform == 'win32', reason="symlinks need privileges on Windows")
    @pytest.mark.asyncio
    async def test_symlinks_skipped_by_default(self, temp_dir):
        (temp_dir / 'real.json').write_text('{}')
        os.symlink(temp_dir / 'real.json', temp_dir / 'link.json')

        adapter = AsyncFileSystemAdapter()
        names = [child.name async for child in adapter.get_children(AsyncFileSystemNode(temp_dir))]
        assert names == ['real.json']

        following = AsyncFileSystemAdapter(follow_symlinks=True)
        names = [child.name async for child in following.get_children(AsyncFileSystemNode(temp_dir))]
        assert names == ['link.json', 'real.json']

    @pytest.mark.asyncio
    async def test_node_metadata(self, temp_dir):
        (temp_dir / 'd1.json').write_bytes(b'1234')
        node = AsyncFileSystemNode(temp_dir / 'd1.json')
        metadata = await node.metadata()
        assert metadata['type'] == 'file'
        assert metadata['size'] == 4

        missing = await AsyncFileSystemNode(temp_dir / 'missing').metadata()
        assert missing['exists'] is False
