"""Error taxonomy for docmirror.

Every failure raised by the codec, the serializer, the adapters and the
walkers derives from MirrorError, so callers can catch the whole family
at once while still telling the individual causes apart.
"""

from pathlib import Path
from typing import Any, Optional


class MirrorError(Exception):
    """Base class for all docmirror errors.

    Carries the address and/or filesystem path the failure concerns so that
    user-visible reports can always name the offending node.
    """

    def __init__(self, message: str, *, address: Any = None, path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.address = address
        self.path = path

    def __str__(self) -> str:
        parts = [self.message]
        if self.address is not None:
            parts.append(f"address='{self.address}'")
        if self.path is not None:
            parts.append(f"path='{self.path}'")
        if self.__cause__ is not None:
            parts.append(f"cause={self.__cause__!r}")
        return " - ".join(parts)


class InvalidAddressError(MirrorError, ValueError):
    """An address segment is empty or not a string."""


class MalformedPathError(MirrorError, ValueError):
    """A mirror path cannot be decoded back into a document address."""


class SerializationError(MirrorError):
    """A field map cannot be converted to or from its artifact form."""

    def __init__(self, message: str, *, key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.key = key

    def __str__(self) -> str:
        base = super().__str__()
        if self.key is not None:
            return f"{base} - field='{self.key}'"
        return base


class PathCreationError(MirrorError):
    """A mirror directory could not be created."""


class ArtifactWriteError(MirrorError):
    """An artifact file could not be written."""


class ArtifactReadError(MirrorError):
    """An artifact file or mirror directory could not be read."""


class DatabaseReadError(MirrorError):
    """The source database could not be enumerated or read."""


class DatabaseWriteError(MirrorError):
    """A document could not be written to the destination database."""


class ConfigurationError(MirrorError):
    """The mirror configuration is incomplete or inconsistent."""


class CredentialsError(ConfigurationError):
    """Database credentials are missing, unreadable or invalid."""
