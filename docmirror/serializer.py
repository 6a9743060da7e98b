"""Conversion between document field maps and on-disk artifacts.

Artifacts are UTF-8 JSON objects with sorted keys, either compact or
pretty-printed. Values JSON cannot express are stored as tagged wrappers::

    {"__type__": "timestamp", "value": "2020-01-02T03:04:05.000006+00:00"}
    {"__type__": "bytes",     "value": "<base64>"}
    {"__type__": "geopoint",  "value": {"latitude": 1.5, "longitude": -2.0}}
    {"__type__": "reference", "value": "Users/u1"}
    {"__type__": "map",       "value": {...}}

The ``map`` tag escapes user maps that contain a ``__type__`` key of their
own. Every nested map holding ``__type__`` is therefore a tag, and a user
map shaped like a tag still round-trips unchanged. The top-level object of
an artifact is always the plain field map and is never wrapped.
"""

import base64
import binascii
import json
from datetime import datetime
from typing import Any, Dict, Optional, Set, Union

from .address import Address
from .codec import PathCodec
from .errors import InvalidAddressError, MalformedPathError, SerializationError
from .values import GeoPoint, Reference

TYPE_KEY = '__type__'
VALUE_KEY = 'value'

TAG_TIMESTAMP = 'timestamp'
TAG_BYTES = 'bytes'
TAG_GEOPOINT = 'geopoint'
TAG_REFERENCE = 'reference'
TAG_MAP = 'map'


class ArtifactSerializer:
    """Serializes field maps in compact or pretty mode."""

    def __init__(self, pretty: bool = False, codec: Optional[PathCodec] = None):
        self.pretty = pretty
        self._codec = codec or PathCodec()

    def to_artifact(self, fields: Dict[str, Any]) -> bytes:
        """Serialize a document's field map.

        Raises:
            SerializationError: naming the top-level field that could not
                be encoded (unsupported type, non-string key, cycle)
        """
        if not isinstance(fields, dict):
            raise SerializationError(
                f"Field map must be a dict, got {type(fields).__name__}"
            )

        encoded = {}
        for key, value in fields.items():
            if not isinstance(key, str):
                raise SerializationError("Field names must be strings", key=repr(key))
            try:
                encoded[key] = self._encode_value(value, set())
            except SerializationError as exc:
                exc.key = key
                raise

        if self.pretty:
            text = json.dumps(encoded, indent=2, sort_keys=True, ensure_ascii=False) + '\n'
        else:
            text = json.dumps(encoded, separators=(',', ':'), sort_keys=True, ensure_ascii=False)
        return text.encode('utf-8')

    def from_artifact(self, data: Union[bytes, str]) -> Dict[str, Any]:
        """Parse an artifact back into a field map.

        Raises:
            SerializationError: on invalid UTF-8 or JSON, a non-object top
                level, or a malformed tagged value
        """
        if isinstance(data, bytes):
            try:
                data = data.decode('utf-8')
            except UnicodeDecodeError as exc:
                raise SerializationError("Artifact is not valid UTF-8") from exc
        try:
            raw = json.loads(data)
        except ValueError as exc:
            raise SerializationError(f"Artifact is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise SerializationError(
                f"Artifact must hold a JSON object, got {type(raw).__name__}"
            )

        fields = {}
        for key, value in raw.items():
            try:
                fields[key] = self._decode_value(value)
            except SerializationError as exc:
                exc.key = key
                raise
        return fields

    # Encoding

    def _encode_value(self, value: Any, active: Set[int]) -> Any:
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, datetime):
            return _tag(TAG_TIMESTAMP, value.isoformat())
        if isinstance(value, (bytes, bytearray, memoryview)):
            return _tag(TAG_BYTES, base64.b64encode(bytes(value)).decode('ascii'))
        # GeoPoint is a tuple, so it must be checked before sequences
        if isinstance(value, GeoPoint):
            return _tag(TAG_GEOPOINT, {'latitude': value.latitude, 'longitude': value.longitude})
        if isinstance(value, Reference):
            return _tag(TAG_REFERENCE, '/'.join(
                self._codec.escape_segment(segment) for segment in value.address
            ))
        if isinstance(value, dict):
            return self._encode_container(value, active, self._encode_map)
        if isinstance(value, (list, tuple)):
            return self._encode_container(value, active, self._encode_sequence)
        raise SerializationError(f"Unsupported value type {type(value).__name__}")

    def _encode_container(self, value, active: Set[int], encoder):
        marker = id(value)
        if marker in active:
            raise SerializationError("Cyclic structure detected")
        active.add(marker)
        try:
            return encoder(value, active)
        finally:
            active.discard(marker)

    def _encode_map(self, value: dict, active: Set[int]) -> dict:
        encoded = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializationError(f"Map keys must be strings, got {key!r}")
            encoded[key] = self._encode_value(item, active)
        if TYPE_KEY in encoded:
            return _tag(TAG_MAP, encoded)
        return encoded

    def _encode_sequence(self, value, active: Set[int]) -> list:
        return [self._encode_value(item, active) for item in value]

    # Decoding

    def _decode_value(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._decode_value(item) for item in value]
        if not isinstance(value, dict):
            return value
        if TYPE_KEY not in value:
            return {key: self._decode_value(item) for key, item in value.items()}

        if set(value) != {TYPE_KEY, VALUE_KEY}:
            raise SerializationError(
                f"Tagged value must have exactly '{TYPE_KEY}' and '{VALUE_KEY}' keys"
            )
        tag, payload = value[TYPE_KEY], value[VALUE_KEY]
        try:
            if tag == TAG_MAP:
                if not isinstance(payload, dict):
                    raise SerializationError("Tagged map payload must be an object")
                return {key: self._decode_value(item) for key, item in payload.items()}
            if tag == TAG_TIMESTAMP:
                return datetime.fromisoformat(payload)
            if tag == TAG_BYTES:
                return base64.b64decode(payload, validate=True)
            if tag == TAG_GEOPOINT:
                return GeoPoint(float(payload['latitude']), float(payload['longitude']))
            if tag == TAG_REFERENCE:
                return Reference(Address(
                    self._codec.unescape_segment(part) for part in payload.split('/')
                ))
        except (TypeError, ValueError, KeyError, AttributeError, binascii.Error,
                InvalidAddressError, MalformedPathError) as exc:
            raise SerializationError(f"Malformed '{tag}' value: {exc}") from exc
        raise SerializationError(f"Unknown value tag {tag!r}")


def _tag(tag: str, payload: Any) -> Dict[str, Any]:
    return {TYPE_KEY: tag, VALUE_KEY: payload}


def to_artifact(fields: Dict[str, Any], pretty: bool = False) -> bytes:
    """Serialize a field map (see ArtifactSerializer.to_artifact)."""
    return ArtifactSerializer(pretty=pretty).to_artifact(fields)


def from_artifact(data: Union[bytes, str]) -> Dict[str, Any]:
    """Parse an artifact (see ArtifactSerializer.from_artifact)."""
    return ArtifactSerializer().from_artifact(data)
