"""Tests for the Firestore adapter against a mocked client."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_document import BaseDocumentReference

from docmirror import Address, GeoPoint, Reference
from docmirror.aio import CollectionNode, DocumentNode, FirestoreAdapter
from docmirror.errors import CredentialsError, DatabaseReadError, DatabaseWriteError


class AsyncIterator:
    """Async iterable over a fixed list, optionally failing at the end."""

    def __init__(self, items, error=None):
        self.items = list(items)
        self.error = error

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.items:
            yield item
        if self.error is not None:
            raise self.error


def make_reference(path):
    reference = MagicMock(spec=BaseDocumentReference)
    reference.path = path
    return reference


def make_snapshot(doc_id, fields):
    return Mock(id=doc_id, reference=Mock(), to_dict=Mock(return_value=fields))


@pytest.fixture
def client():
    client = MagicMock()
    client.project = 'test-project'
    return client


class TestConstruction:

    def test_name_from_client(self, client):
        assert FirestoreAdapter(client).name == 'test-project'
        assert repr(FirestoreAdapter(client, name='prod')) == "FirestoreAdapter('prod')"

    def test_from_service_account(self, tmp_path):
        key = tmp_path / 'key.json'
        credentials = Mock(project_id='from-key')
        with patch('docmirror.aio.adapters.firestore.service_account.Credentials.from_service_account_file',
                   return_value=credentials) as load, \
                patch('docmirror.aio.adapters.firestore.firestore.AsyncClient') as client_class:
            adapter = FirestoreAdapter.from_service_account(key)

        load.assert_called_once_with(str(key))
        client_class.assert_called_once_with(project='from-key', credentials=credentials)
        assert adapter.name == 'from-key'
        assert adapter.client is client_class.return_value

    def test_unreadable_key(self, tmp_path):
        key = tmp_path / 'missing.json'
        with patch('docmirror.aio.adapters.firestore.service_account.Credentials.from_service_account_file',
                   side_effect=FileNotFoundError(str(key))):
            with pytest.raises(CredentialsError) as exc_info:
                FirestoreAdapter.from_service_account(key)
        assert exc_info.value.path == key


class TestListing:

    @pytest.mark.asyncio
    async def test_root_collections(self, client):
        client.collections = Mock(return_value=AsyncIterator([Mock(id='users'), Mock(id='orders')]))
        adapter = FirestoreAdapter(client)

        children = [child async for child in adapter.get_children(adapter.root())]

        assert [child.address for child in children] == [Address(['users']), Address(['orders'])]
        assert all(isinstance(child, CollectionNode) for child in children)

    @pytest.mark.asyncio
    async def test_documents_carry_their_fields(self, client):
        reference = Mock()
        reference.stream = Mock(return_value=AsyncIterator([
            make_snapshot('u1', {'name': 'Ada'}),
            make_snapshot('u2', None),
        ]))
        adapter = FirestoreAdapter(client)

        children = [
            child async for child in adapter.get_children(CollectionNode(Address(['users']), reference))
        ]

        assert [child.address.path for child in children] == ['users/u1', 'users/u2']
        assert children[0].fields == {'name': 'Ada'}
        assert children[1].fields == {}

    @pytest.mark.asyncio
    async def test_sub_collections(self, client):
        document = Mock()
        document.collections = Mock(return_value=AsyncIterator([Mock(id='orders')]))
        adapter = FirestoreAdapter(client)

        node = DocumentNode(Address(['users', 'u1']), document)
        children = [child async for child in adapter.get_children(node)]

        assert [child.address.path for child in children] == ['users/u1/orders']

    @pytest.mark.asyncio
    async def test_listing_error_is_wrapped(self, client):
        client.collections = Mock(return_value=AsyncIterator(
            [Mock(id='users')], error=google_exceptions.PermissionDenied("denied"),
        ))
        adapter = FirestoreAdapter(client)

        with pytest.raises(DatabaseReadError) as exc_info:
            async for _ in adapter.get_children(adapter.root()):
                pass
        assert isinstance(exc_info.value.__cause__, google_exceptions.PermissionDenied)


class TestValues:

    @pytest.mark.asyncio
    async def test_read_fields_translates_values(self, client):
        when = datetime(2020, 1, 1, tzinfo=timezone.utc)
        node = DocumentNode(Address(['users', 'u1']), fields={
            'where': firestore.GeoPoint(1.5, -2.0),
            'friend': make_reference('users/u2'),
            'nested': {'points': [firestore.GeoPoint(0.0, 0.0)]},
            'when': when,
            'blob': b'xy',
        })
        adapter = FirestoreAdapter(client)

        fields = await adapter.read_fields(node)

        assert fields == {
            'where': GeoPoint(1.5, -2.0),
            'friend': Reference(Address(['users', 'u2'])),
            'nested': {'points': [GeoPoint(0.0, 0.0)]},
            'when': when,
            'blob': b'xy',
        }

    @pytest.mark.asyncio
    async def test_read_fields_fetches_missing_snapshot(self, client):
        reference = Mock()
        reference.get = AsyncMock(return_value=make_snapshot('u1', {'a': 1}))
        adapter = FirestoreAdapter(client)

        fields = await adapter.read_fields(DocumentNode(Address(['users', 'u1']), reference))

        assert fields == {'a': 1}
        reference.get.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_read_error_is_wrapped(self, client):
        reference = Mock()
        reference.get = AsyncMock(side_effect=google_exceptions.NotFound("gone"))
        adapter = FirestoreAdapter(client)

        with pytest.raises(DatabaseReadError):
            await adapter.read_fields(DocumentNode(Address(['users', 'u1']), reference))

    @pytest.mark.asyncio
    async def test_write_document_translates_values(self, client):
        document = Mock()
        document.set = AsyncMock()
        client.document = Mock(return_value=document)
        adapter = FirestoreAdapter(client)

        await adapter.write_document(Address(['users', 'u1']), {
            'where': GeoPoint(1.5, -2.0),
            'friend': Reference(Address(['users', 'u2'])),
            'name': 'Ada',
        })

        client.document.assert_any_call('users', 'u1')
        client.document.assert_any_call('users', 'u2')
        written = document.set.await_args.args[0]
        assert isinstance(written['where'], firestore.GeoPoint)
        assert written['where'].latitude == 1.5
        assert written['friend'] is document
        assert written['name'] == 'Ada'

    @pytest.mark.asyncio
    async def test_write_error_is_wrapped(self, client):
        document = Mock()
        document.set = AsyncMock(side_effect=google_exceptions.PermissionDenied("denied"))
        client.document = Mock(return_value=document)
        adapter = FirestoreAdapter(client)

        with pytest.raises(DatabaseWriteError) as exc_info:
            await adapter.write_document(Address(['users', 'u1']), {'a': 1})
        assert exc_info.value.address == Address(['users', 'u1'])


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_close_sync_client(self, client):
        client.close = Mock(return_value=None)
        async with FirestoreAdapter(client):
            pass
        client.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_async_client(self, client):
        client.close = AsyncMock()
        await FirestoreAdapter(client).close()
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stats_and_capabilities(self, client):
        adapter = FirestoreAdapter(client)
        assert adapter.supports_capability('geopoints')
        stats = await adapter.get_stats()
        assert stats['project'] == 'test-project'
