"""docmirror - Mirror a hierarchical document database to the filesystem.

docmirror walks a live document database (collections containing
documents, documents containing sub-collections) and materializes it as
one JSON file per document, and walks such a mirror to write every
document back into a database.

Pure building blocks:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from docmirror import Address, PathCodec, ArtifactSerializer

Walkers and adapters:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from docmirror.aio import backup_database, restore_database
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from .address import Address
from .codec import PathCodec, encode, decode
from .serializer import ArtifactSerializer, to_artifact, from_artifact
from .values import GeoPoint, Reference
from .config import MirrorConfig, MirrorMode
from .errors import (
    MirrorError,
    InvalidAddressError,
    MalformedPathError,
    SerializationError,
    PathCreationError,
    ArtifactWriteError,
    ArtifactReadError,
    DatabaseReadError,
    DatabaseWriteError,
    ConfigurationError,
    CredentialsError,
)

from . import aio

__all__ = [
    "__version__",
    "aio",
    "Address",
    "PathCodec",
    "encode",
    "decode",
    "ArtifactSerializer",
    "to_artifact",
    "from_artifact",
    "GeoPoint",
    "Reference",
    "MirrorConfig",
    "MirrorMode",
    "MirrorError",
    "InvalidAddressError",
    "MalformedPathError",
    "SerializationError",
    "PathCreationError",
    "ArtifactWriteError",
    "ArtifactReadError",
    "DatabaseReadError",
    "DatabaseWriteError",
    "ConfigurationError",
    "CredentialsError",
]
