"""Addresses of collections and documents in a hierarchical database.

An address is the ordered sequence of segments leading from the database
root to a node: collection id, document id, collection id, ... An address
of even length names a document, an odd length names a collection and the
empty address is the database root.
"""

from typing import Iterable, Iterator, Optional, Tuple

from .errors import InvalidAddressError


class Address:
    """Immutable, hashable address of a database node."""

    __slots__ = ('_segments',)

    def __init__(self, segments: Iterable[str] = ()):
        segments = tuple(segments)
        for index, segment in enumerate(segments):
            if not isinstance(segment, str):
                raise InvalidAddressError(
                    f"Segment {index} must be a string, got {type(segment).__name__}",
                    address='/'.join(map(str, segments)),
                )
            if not segment:
                raise InvalidAddressError(
                    f"Segment {index} is empty",
                    address='/'.join(segments),
                )
        self._segments: Tuple[str, ...] = segments

    @classmethod
    def root(cls) -> 'Address':
        return cls(())

    @classmethod
    def from_path(cls, path: str) -> 'Address':
        """Build an address from a slash-separated database path.

        Database ids never contain '/', so this is only meant for paths
        reported by the database itself (e.g. reference values).
        """
        path = path.strip('/')
        if not path:
            return cls.root()
        return cls(path.split('/'))

    @property
    def segments(self) -> Tuple[str, ...]:
        return self._segments

    @property
    def depth(self) -> int:
        return len(self._segments)

    @property
    def is_root(self) -> bool:
        return not self._segments

    @property
    def is_document(self) -> bool:
        return bool(self._segments) and len(self._segments) % 2 == 0

    @property
    def is_collection(self) -> bool:
        return len(self._segments) % 2 == 1

    @property
    def id(self) -> Optional[str]:
        """Last segment, or None for the root."""
        return self._segments[-1] if self._segments else None

    @property
    def collection_id(self) -> Optional[str]:
        """Id of the collection this address is, or belongs to."""
        if self.is_collection:
            return self._segments[-1]
        if self.is_document:
            return self._segments[-2]
        return None

    @property
    def document_id(self) -> Optional[str]:
        return self._segments[-1] if self.is_document else None

    @property
    def parent(self) -> Optional['Address']:
        if self.is_root:
            return None
        return Address(self._segments[:-1])

    @property
    def path(self) -> str:
        """Slash-joined display form, e.g. 'Users/u1/Orders/o1'."""
        return '/'.join(self._segments)

    def child(self, segment: str) -> 'Address':
        return Address(self._segments + (segment,))

    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index):
        return self._segments[index]

    def __eq__(self, other) -> bool:
        if isinstance(other, Address):
            return self._segments == other._segments
        if isinstance(other, (tuple, list)):
            return self._segments == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._segments)

    def __str__(self) -> str:
        return '/' + self.path

    def __repr__(self) -> str:
        return f"Address({list(self._segments)!r})"
