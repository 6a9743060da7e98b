"""Database value types that have no native JSON representation.

Database adapters translate their client library's types into these
before handing field maps to the serializer, and back before writing.
Timestamps use ``datetime`` and binary blobs use ``bytes`` directly.
"""

from dataclasses import dataclass
from typing import NamedTuple

from .address import Address


class GeoPoint(NamedTuple):
    """Geographic coordinate."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Reference:
    """Reference to another document in the same database."""
    address: Address

    @property
    def path(self) -> str:
        return self.address.path
