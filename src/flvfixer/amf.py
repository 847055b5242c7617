"""
AMF0 value codec and the FLV ``onMetaData`` document.

Values are decoded into plain Python objects:

    Number      -> float
    Boolean     -> bool
    String      -> str   (LongString as well)
    Object      -> dict  (insertion order is the on-disk key order)
    ECMAArray   -> dict
    StrictArray -> list
    Date        -> datetime (timezone-aware, UTC)
    Null        -> None  (Undefined as well)

Encoding goes the other way; dicts are always written as Objects.
"""

import struct
from collections.abc import MutableMapping
from datetime import datetime, timedelta, timezone
from enum import IntEnum

from .exceptions import AmfDecodeError, AmfEncodeError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
OBJECT_END = b"\x00\x00\x09"
METADATA_NAME = "onMetaData"


class AmfType(IntEnum):
    """AMF0 type markers."""
    NUMBER = 0
    BOOLEAN = 1
    STRING = 2
    OBJECT = 3
    MOVIE_CLIP = 4
    NULL = 5
    UNDEFINED = 6
    REFERENCE = 7
    ECMA_ARRAY = 8
    OBJECT_END = 9
    STRICT_ARRAY = 10
    DATE = 11
    LONG_STRING = 12


class _Reader:
    """Cursor over a bytes buffer that raises AmfDecodeError on short reads."""

    def __init__(self, data, offset=0):
        self.data = data
        self.offset = offset

    def read(self, count):
        end = self.offset + count
        if end > len(self.data):
            raise AmfDecodeError(
                f"Unexpected end of AMF data at offset {self.offset} "
                f"(wanted {count} bytes, {len(self.data) - self.offset} left)"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def unpack(self, fmt):
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))

    def peek(self, count):
        return self.data[self.offset:self.offset + count]


def _decode_number(reader):
    return reader.unpack(">d")[0]


def _decode_boolean(reader):
    return reader.read(1)[0] != 0


def _decode_utf8(reader, length):
    raw = reader.read(length)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AmfDecodeError(f"Invalid UTF-8 in AMF string: {e}") from e


def _decode_string(reader):
    (length,) = reader.unpack(">H")
    return _decode_utf8(reader, length)


def _decode_long_string(reader):
    (length,) = reader.unpack(">I")
    return _decode_utf8(reader, length)


def _decode_object(reader):
    result = {}
    while reader.peek(3) != OBJECT_END:
        key = _decode_string(reader)
        result[key] = decode_value(reader)
    reader.read(3)
    return result


def _decode_ecma_array(reader):
    # The element count is informational only, the terminator ends the array.
    reader.read(4)
    return _decode_object(reader)


def _decode_strict_array(reader):
    (count,) = reader.unpack(">I")
    return [decode_value(reader) for _ in range(count)]


def _decode_date(reader):
    milliseconds, tz_offset = reader.unpack(">dh")
    try:
        return EPOCH + timedelta(milliseconds=milliseconds) - timedelta(minutes=tz_offset)
    except (OverflowError, ValueError) as e:
        raise AmfDecodeError(f"AMF date out of range: {milliseconds} ms") from e


def _decode_null(reader):
    return None


_DECODERS = {
    AmfType.NUMBER: _decode_number,
    AmfType.BOOLEAN: _decode_boolean,
    AmfType.STRING: _decode_string,
    AmfType.OBJECT: _decode_object,
    AmfType.NULL: _decode_null,
    AmfType.UNDEFINED: _decode_null,
    AmfType.ECMA_ARRAY: _decode_ecma_array,
    AmfType.STRICT_ARRAY: _decode_strict_array,
    AmfType.DATE: _decode_date,
    AmfType.LONG_STRING: _decode_long_string,
}


def decode_value(reader, expect=None):
    """
    Decode one tagged AMF0 value at the reader's position.

    Args:
        reader (_Reader): Cursor over the AMF data.
        expect (AmfType): If given, the type marker must match it.

    Returns:
        The decoded Python value.

    Raises:
        AmfDecodeError: On a type mismatch, an unsupported marker or short data.
    """
    marker = reader.read(1)[0]
    if expect is not None and marker != expect:
        raise AmfDecodeError(
            f"AMF decode type error: expected {AmfType(expect).name}, got marker {marker}"
        )
    decoder = _DECODERS.get(marker)
    if decoder is None:
        try:
            name = AmfType(marker).name
        except ValueError:
            name = f"0x{marker:02x}"
        raise AmfDecodeError(f"AMF type {name} is not supported")
    return decoder(reader)


def decode(data, offset=0):
    """Decode a single AMF0 value from ``data`` starting at ``offset``."""
    return decode_value(_Reader(data, offset))


def _encode_key(out, key):
    raw = key.encode("utf-8")
    if len(raw) > 0xFFFF:
        raise AmfEncodeError(f"AMF object key too long ({len(raw)} bytes)")
    out += struct.pack(">H", len(raw))
    out += raw


def _encode_number(out, value):
    out.append(AmfType.NUMBER)
    out += struct.pack(">d", float(value))


def _encode_boolean(out, value):
    out.append(AmfType.BOOLEAN)
    out.append(1 if value else 0)


def _encode_string(out, value):
    raw = value.encode("utf-8")
    if len(raw) >= 0xFFFF:
        out.append(AmfType.LONG_STRING)
        out += struct.pack(">I", len(raw))
    else:
        out.append(AmfType.STRING)
        out += struct.pack(">H", len(raw))
    out += raw


def _encode_object(out, value):
    out.append(AmfType.OBJECT)
    for key, item in value.items():
        _encode_key(out, key)
        encode_value(out, item)
    out += OBJECT_END


def _encode_strict_array(out, value):
    out.append(AmfType.STRICT_ARRAY)
    out += struct.pack(">I", len(value))
    for item in value:
        encode_value(out, item)


def _encode_date(out, value):
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    milliseconds = (value - EPOCH) / timedelta(milliseconds=1)
    out.append(AmfType.DATE)
    out += struct.pack(">dh", milliseconds, 0)


def _encode_null(out, value):
    out.append(AmfType.NULL)


def encode_value(out, value):
    """
    Append the AMF0 encoding of ``value`` to the bytearray ``out``.

    Raises:
        AmfEncodeError: If the value's type has no AMF0 representation.
    """
    # bool before int: bool is an int subclass
    if value is None:
        _encode_null(out, value)
    elif isinstance(value, bool):
        _encode_boolean(out, value)
    elif isinstance(value, (int, float)):
        _encode_number(out, value)
    elif isinstance(value, str):
        _encode_string(out, value)
    elif isinstance(value, (dict, FlvMetadata)):
        _encode_object(out, value)
    elif isinstance(value, (list, tuple)):
        _encode_strict_array(out, value)
    elif isinstance(value, datetime):
        _encode_date(out, value)
    else:
        raise AmfEncodeError(f"Type {type(value).__name__} is not supported by AMF0")


def encode(value):
    """Return the AMF0 encoding of a single value as bytes."""
    out = bytearray()
    encode_value(out, value)
    return bytes(out)


def _strip_nul(value):
    if isinstance(value, str):
        return value.replace("\x00", "")
    return value


class FlvMetadata(MutableMapping):
    """
    Ordered ``onMetaData`` document of an FLV script tag.

    ``duration`` is always present and always the first key, both in
    iteration order and on re-encode.
    """

    def __init__(self, entries=None):
        self._entries = {"duration": 0.0}
        if entries:
            self.update(entries)

    @classmethod
    def from_bytes(cls, data):
        """
        Parse the payload of a metadata tag.

        The payload must start with the String ``onMetaData`` followed by an
        Object or ECMA array. Empty keys are dropped, ``duration`` is coerced
        to float (0 when absent or not a number) and NUL characters are
        stripped from string values.

        Raises:
            AmfDecodeError: If the payload is not an onMetaData block.
        """
        reader = _Reader(data)
        name = decode_value(reader, expect=AmfType.STRING)
        if name != METADATA_NAME:
            raise AmfDecodeError(f"Script tag is not onMetaData (got {name!r})")

        raw = decode_value(reader)
        if not isinstance(raw, dict):
            raise AmfDecodeError(
                f"onMetaData body must be an object, got {type(raw).__name__}"
            )
        raw.pop("", None)

        duration = raw.pop("duration", 0.0)
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            duration = 0.0

        metadata = cls()
        metadata["duration"] = float(duration)
        for key, value in raw.items():
            metadata._entries[key] = _strip_nul(value)
        return metadata

    def to_bytes(self):
        """Encode as ``"onMetaData"`` followed by an AMF0 Object, duration first."""
        out = bytearray()
        encode_value(out, METADATA_NAME)
        encode_value(out, self._entries)
        return bytes(out)

    def __getitem__(self, key):
        return self._entries[key]

    def __setitem__(self, key, value):
        self._entries[key] = value

    def __delitem__(self, key):
        if key == "duration":
            raise KeyError("duration cannot be removed from FLV metadata")
        del self._entries[key]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return f"FlvMetadata({self._entries!r})"
