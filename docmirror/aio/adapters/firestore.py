"""Google Cloud Firestore adapter.

Bridges firestore.AsyncClient to the AsyncDatabaseAdapter interface and
translates Firestore value types to and from the docmirror value model.
"""

import inspect
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional, Set, Union

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_document import BaseDocumentReference
from google.oauth2 import service_account

from ...address import Address
from ...errors import CredentialsError, DatabaseReadError, DatabaseWriteError
from ...values import GeoPoint, Reference
from ..core import (
    AsyncDatabaseAdapter,
    AsyncMirrorNode,
    CollectionNode,
    DatabaseRootNode,
    DocumentNode,
)

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class FirestoreAdapter(AsyncDatabaseAdapter):
    """Firestore database behind the walker interface.

    The client is injected, so several adapters (e.g. a source and a
    destination project) can be used side by side.
    """

    def __init__(self, client: firestore.AsyncClient, name: Optional[str] = None):
        """Initialize Firestore adapter.

        Args:
            client: Connected Firestore async client
            name: Label used in log lines (defaults to the project id)
        """
        super().__init__()
        self._client = client
        self.name = name or getattr(client, 'project', None) or 'firestore'

    @classmethod
    def from_service_account(
        cls,
        credentials_path: Union[str, Path],
        project: Optional[str] = None
    ) -> 'FirestoreAdapter':
        """Create an adapter from a service-account JSON key file.

        Raises:
            CredentialsError: if the key file cannot be read or parsed
        """
        path = Path(credentials_path)
        try:
            credentials = service_account.Credentials.from_service_account_file(str(path))
        except (OSError, ValueError, auth_exceptions.GoogleAuthError) as exc:
            raise CredentialsError("Unable to read credentials", path=path) from exc

        project = project or credentials.project_id
        client = firestore.AsyncClient(project=project, credentials=credentials)
        logger.debug("Connected Firestore client for project %s", project)
        return cls(client, name=project)

    @property
    def client(self) -> firestore.AsyncClient:
        return self._client

    async def get_children(self, node: AsyncMirrorNode) -> AsyncIterator[AsyncMirrorNode]:
        """Stream root collections, documents or sub-collections.

        Raises:
            DatabaseReadError: if Firestore rejects the listing
        """
        try:
            if isinstance(node, DatabaseRootNode):
                async for reference in self._client.collections():
                    yield CollectionNode(node.address.child(reference.id), reference)

            elif isinstance(node, CollectionNode):
                reference = node.handle or self._client.collection(*node.address)
                async for snapshot in reference.stream():
                    yield DocumentNode(
                        node.address.child(snapshot.id),
                        snapshot.reference,
                        fields=snapshot.to_dict() or {},
                    )

            elif isinstance(node, DocumentNode):
                reference = node.handle or self._client.document(*node.address)
                async for collection in reference.collections():
                    yield CollectionNode(node.address.child(collection.id), collection)

        except _CLIENT_ERRORS as exc:
            raise DatabaseReadError("Unable to list children", address=node.address) from exc

    async def read_fields(self, node: DocumentNode) -> Dict[str, Any]:
        """Read a document's fields in the docmirror value model.

        Raises:
            DatabaseReadError: if the document cannot be fetched
        """
        raw = node.fields
        if raw is None:
            reference = node.handle or self._client.document(*node.address)
            try:
                snapshot = await reference.get()
            except _CLIENT_ERRORS as exc:
                raise DatabaseReadError("Unable to read document", address=node.address) from exc
            raw = snapshot.to_dict() or {}
        return {key: self._to_model(value) for key, value in raw.items()}

    async def write_document(self, address: Address, fields: Dict[str, Any]) -> None:
        """Create or overwrite a document.

        Raises:
            DatabaseWriteError: if Firestore rejects the write
        """
        try:
            reference = self._client.document(*address)
            await reference.set({key: self._to_client(value) for key, value in fields.items()})
        except (*_CLIENT_ERRORS, ValueError, TypeError) as exc:
            raise DatabaseWriteError("Unable to write document", address=address) from exc

    def _to_model(self, value: Any) -> Any:
        """Firestore value -> docmirror value."""
        if isinstance(value, firestore.GeoPoint):
            return GeoPoint(value.latitude, value.longitude)
        if isinstance(value, BaseDocumentReference):
            return Reference(Address.from_path(value.path))
        if isinstance(value, dict):
            return {key: self._to_model(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._to_model(item) for item in value]
        # datetime (DatetimeWithNanoseconds), bytes and JSON types pass through
        return value

    def _to_client(self, value: Any) -> Any:
        """docmirror value -> Firestore value."""
        if isinstance(value, GeoPoint):
            return firestore.GeoPoint(value.latitude, value.longitude)
        if isinstance(value, Reference):
            return self._client.document(*value.address)
        if isinstance(value, dict):
            return {key: self._to_client(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._to_client(item) for item in value]
        return value

    def _define_capabilities(self) -> Set[str]:
        return super()._define_capabilities() | {
            'geopoints',
            'references',
            'timestamps',
            'bytes',
        }

    async def get_stats(self) -> dict:
        stats = await super().get_stats()
        stats['project'] = self.name
        return stats

    async def close(self):
        """Close the underlying client if it supports closing."""
        close = getattr(self._client, 'close', None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"FirestoreAdapter({self.name!r})"
