"""
FLV container header validation and tag index scanning.

The scanner reads every tag header in a file and keeps only what the
timestamp repair needs (type, flags, payload size, timestamp and byte
position). Payload bytes are skipped, never buffered.
"""

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag

from .exceptions import FlvFormatError
from .stream_copier import skip_bytes

FLV_SIGNATURE = b"FLV"
FLV_VERSION = 1
FLV_HEADER_LENGTH = 9

# FrameType 1 (keyframe) in the high nibble, CodecID 7 (AVC) in the low nibble
AVC_KEYFRAME = 0x17


class TagType(IntEnum):
    AUDIO = 8
    VIDEO = 9
    SCRIPT = 18


class TagFlag(IntFlag):
    NONE = 0
    HEADER = 1 << 0
    KEYFRAME = 1 << 1
    END_OF_SEQUENCE = 1 << 2
    TIMESTAMP_CARRIED = 1 << 3


class StepOutcome(Enum):
    """Result of one step of a tag-by-tag loop."""
    CONTINUE = "continue"
    SUPPRESS_REFERENCE = "suppress_reference"
    STOP_SCAN = "stop_scan"


@dataclass
class TagRecord:
    """
    One FLV tag without its payload.

    ``position`` is the offset of the tag's type byte in the source file;
    the payload starts 11 bytes later.
    """
    tag_type: TagType
    flags: TagFlag
    payload_size: int
    timestamp: int
    position: int

    @property
    def is_header(self):
        return bool(self.flags & TagFlag.HEADER)

    @property
    def is_carried(self):
        return bool(self.flags & TagFlag.TIMESTAMP_CARRIED)

    @property
    def letter(self):
        return {TagType.AUDIO: "A", TagType.VIDEO: "V", TagType.SCRIPT: "S"}[self.tag_type]

    @property
    def flag_marks(self):
        """Flags as a fixed-width string, e.g. ``K---`` for a plain keyframe."""
        return "".join(
            mark if self.flags & flag else "-"
            for flag, mark in (
                (TagFlag.KEYFRAME, "K"),
                (TagFlag.HEADER, "H"),
                (TagFlag.END_OF_SEQUENCE, "E"),
                (TagFlag.TIMESTAMP_CARRIED, "L"),
            )
        )

    def describe(self):
        return (f"{self.letter}, {self.flag_marks}, TS = {self.timestamp}, "
                f"Size = {self.payload_size}, Pos = {self.position}")


def read_header(stream):
    """
    Validate the 9-byte FLV file header.

    Leaves the stream positioned at the first previous-tag-size field.

    Raises:
        FlvFormatError: If the signature, version or header length is wrong.
    """
    header = stream.read(FLV_HEADER_LENGTH)
    if len(header) < FLV_HEADER_LENGTH or header[:3] != FLV_SIGNATURE or header[3] != FLV_VERSION:
        raise FlvFormatError("source file is not a FLV file")
    (header_length,) = struct.unpack(">I", header[5:9])
    if header_length != FLV_HEADER_LENGTH:
        raise FlvFormatError(f"file format not supported (header length {header_length})")


def _read_exact(stream, count):
    data = stream.read(count)
    if len(data) != count:
        return None
    return data


def _read_tag(stream):
    """
    Read the next tag header and skip its payload.

    Returns:
        tuple: (StepOutcome, TagRecord or None). STOP_SCAN means the stream
        ended, was truncated, or hit an unknown tag type.
    """
    if _read_exact(stream, 4) is None:
        return StepOutcome.STOP_SCAN, None

    position = stream.tell()
    head = _read_exact(stream, 8)
    if head is None:
        return StepOutcome.STOP_SCAN, None

    try:
        tag_type = TagType(head[0])
    except ValueError:
        return StepOutcome.STOP_SCAN, None

    payload_size = int.from_bytes(head[1:4], "big")
    # 24-bit timestamp plus an extension byte holding bits 24-31
    (timestamp,) = struct.unpack(">i", bytes([head[7]]) + head[4:7])

    flags = TagFlag.NONE
    if tag_type == TagType.AUDIO:
        # stream id (3) + sound format (1), then the AAC packet type
        probe = _read_exact(stream, 5)
        if probe is None:
            return StepOutcome.STOP_SCAN, None
        if probe[4] == 0:
            flags |= TagFlag.HEADER
        remaining = payload_size - 2
    elif tag_type == TagType.VIDEO:
        # stream id (3), frame type/codec byte, then the AVC packet type
        probe = _read_exact(stream, 5)
        if probe is None:
            return StepOutcome.STOP_SCAN, None
        if probe[3] == AVC_KEYFRAME:
            flags |= TagFlag.KEYFRAME
        if probe[4] == 0:
            flags |= TagFlag.HEADER
        elif probe[4] == 2:
            flags |= TagFlag.END_OF_SEQUENCE
        remaining = payload_size - 2
    else:
        remaining = 3 + payload_size

    if remaining < 0 or skip_bytes(stream, remaining) != remaining:
        return StepOutcome.STOP_SCAN, None

    return StepOutcome.CONTINUE, TagRecord(tag_type, flags, payload_size, timestamp, position)


def scan_tags(stream):
    """
    Build the tag index of an FLV stream.

    The stream must be positioned right after a validated header (see
    read_header). Scanning stops silently at the first incomplete tag or
    unknown tag type; everything read up to there is returned.

    Args:
        stream: Seekable binary stream.

    Returns:
        list[TagRecord]: Tags in file order.

    Raises:
        FlvFormatError: If no tag was read or the first tag is not metadata.
    """
    tags = []
    while True:
        outcome, tag = _read_tag(stream)
        if outcome is StepOutcome.STOP_SCAN:
            break
        tags.append(tag)

    if not tags or tags[0].tag_type != TagType.SCRIPT:
        raise FlvFormatError("missing metadata: first tag is not onMetaData")
    return tags
