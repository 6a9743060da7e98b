"""Bidirectional mapping between database addresses and mirror paths.

Layout of a mirror rooted at ``root``::

    root/<collection>                      directory of a collection
    root/<collection>/<document>.json      artifact holding a document's fields
    root/<collection>/<document>/          directory holding its sub-collections
    root/<collection>/<document>/<sub>/<nested>.json

Escaping policy:
    Each segment is escaped on its own. The characters in RESERVED_CHARACTERS
    and ASCII control characters are written as ``%XX`` (upper-case hex),
    the whole-segment values ``.`` and ``..`` are written as ``%2E`` and
    ``%2E%2E``, and a segment ending in the artifact extension has the
    extension's dot written as ``%2E`` (``x.json`` -> ``x%2Ejson``), so no
    segment directory can take the name of a sibling's artifact. Every
    other character is kept as is. Decoding reverses this
    exactly, so ``decode(encode(a), root) == a`` for every document address.
"""

import re
from pathlib import Path
from typing import List, Union

from .address import Address
from .errors import MalformedPathError

DEFAULT_EXTENSION = '.json'

RESERVED_CHARACTERS = frozenset('%/\\:*?"<>|')

_ESCAPE_SEQUENCE = re.compile(r'%([0-9A-Fa-f]{2})')

PathLike = Union[str, Path]


def _needs_escape(char: str) -> bool:
    return char in RESERVED_CHARACTERS or ord(char) < 0x20 or ord(char) == 0x7F


class PathCodec:
    """Encodes addresses as mirror paths and decodes artifact paths back.

    Pure and synchronous: no filesystem access happens here.
    """

    def __init__(self, extension: str = DEFAULT_EXTENSION):
        if not extension.startswith('.') or len(extension) < 2:
            raise ValueError(f"Artifact extension must look like '.json', got {extension!r}")
        self.extension = extension

    # Segments

    def escape_segment(self, segment: str) -> str:
        if segment in ('.', '..'):
            return '%2E' * len(segment)
        escaped = ''.join(
            f'%{ord(char):02X}' if _needs_escape(char) else char
            for char in segment
        )
        # 'x.json' must not share a name with the artifact of document 'x'
        if escaped.endswith(self.extension):
            cut = len(escaped) - len(self.extension)
            escaped = escaped[:cut] + '%2E' + escaped[cut + 1:]
        return escaped

    def unescape_segment(self, component: str, path: PathLike = None) -> str:
        """Reverse escape_segment.

        Raises:
            MalformedPathError: on a stray '%' or an empty component
        """
        if not component:
            raise MalformedPathError("Empty path component", path=path)
        # Every '%' must start a valid escape sequence
        if component.count('%') != len(_ESCAPE_SEQUENCE.findall(component)):
            raise MalformedPathError(
                f"Invalid escape sequence in component {component!r}", path=path
            )
        return _ESCAPE_SEQUENCE.sub(lambda match: chr(int(match.group(1), 16)), component)

    # Encoding

    def encode(self, address: Address, root: PathLike) -> Path:
        """Location of a node in the mirror.

        Documents map to their artifact file, collections to their
        directory and the root address to the mirror root itself.
        """
        root = Path(root)
        if address.is_root:
            return root
        escaped = [self.escape_segment(segment) for segment in address]
        if address.is_document:
            escaped[-1] = escaped[-1] + self.extension
        return root.joinpath(*escaped)

    def directory_for(self, address: Address, root: PathLike) -> Path:
        """Directory that holds the children of a node."""
        return Path(root).joinpath(*(self.escape_segment(segment) for segment in address))

    # Decoding

    def decode(self, path: PathLike, root: PathLike) -> Address:
        """Recover the document address of an artifact file.

        Args:
            path: Full path of an artifact file inside the mirror
            root: Mirror root

        Returns:
            Document address (always of even length)

        Raises:
            MalformedPathError: if the path is outside the mirror, lacks the
                artifact extension, contains an invalid escape or does not
                name a document
        """
        parts = self._relative_parts(path, root)
        if not parts:
            raise MalformedPathError("Path is the mirror root, not an artifact", path=Path(path))

        last = parts[-1]
        if not last.endswith(self.extension):
            raise MalformedPathError(
                f"Missing '{self.extension}' extension", path=Path(path)
            )
        stem = last[:-len(self.extension)]
        if not stem:
            raise MalformedPathError("Empty document id", path=Path(path))

        segments = [self.unescape_segment(part, path) for part in parts[:-1]]
        segments.append(self.unescape_segment(stem, path))

        if len(segments) % 2:
            raise MalformedPathError(
                f"Artifact at depth {len(segments)} names a collection, not a document",
                path=Path(path),
            )
        return Address(segments)

    def address_for_directory(self, path: PathLike, root: PathLike) -> Address:
        """Address of a mirror directory (collection or document segment)."""
        parts = self._relative_parts(path, root)
        return Address(self.unescape_segment(part, path) for part in parts)

    def _relative_parts(self, path: PathLike, root: PathLike) -> List[str]:
        try:
            relative = Path(path).relative_to(Path(root))
        except ValueError as exc:
            raise MalformedPathError(
                f"Path is not inside mirror root '{root}'", path=Path(path)
            ) from exc
        return [part for part in relative.parts if part != '.']


_default_codec = PathCodec()


def encode(address: Address, root: PathLike) -> Path:
    """Encode with the default '.json' codec."""
    return _default_codec.encode(address, root)


def decode(path: PathLike, root: PathLike) -> Address:
    """Decode with the default '.json' codec."""
    return _default_codec.decode(path, root)
