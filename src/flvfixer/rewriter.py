"""
Writes one repaired FLV file per segment.
"""

import os
import struct

from .amf import METADATA_NAME, FlvMetadata, encode
from .flv_scanner import TagType
from .stream_copier import copy_bytes

# Signature, version 1, audio+video flags, header length 9, first previous-tag-size 0
FLV_FILE_START = b"FLV\x01\x05\x00\x00\x00\x09\x00\x00\x00\x00"
TAG_HEADER_SIZE = 11

# File header, tag header, "onMetaData", object marker, "duration" key, number marker
DURATION_OFFSET = (len(FLV_FILE_START) + TAG_HEADER_SIZE + len(encode(METADATA_NAME))
                   + 1 + 2 + len("duration") + 1)


def output_path(input_path, index, output_dir=None):
    """
    Name of the repaired file for segment ``index``.

    ``recording.flv`` becomes ``recording_fixed_0.flv``, placed next to the
    input unless ``output_dir`` is given.
    """
    directory, filename = os.path.split(input_path)
    stem, ext = os.path.splitext(filename)
    if output_dir is not None:
        directory = output_dir
    return os.path.join(directory, f"{stem}_fixed_{index}{ext}")


def iter_corrected(segment):
    """
    Yield ``(tag, corrected_timestamp)`` for every tag after the metadata tag.

    The clock starts at the timestamp of the segment's first media tag, so
    the output begins at 0. Each jump table entry shifts every following
    tag; tags whose timestamp is carried reuse the previous output time.
    """
    tags = segment.tags
    if len(tags) < 2:
        return

    offset = tags[1].timestamp
    last_timestamp = 0
    for tag in tags[1:]:
        if not tag.is_carried:
            if tag.position in segment.jump_table:
                offset -= segment.jump_table[tag.position]
            last_timestamp = tag.timestamp - offset
        yield tag, last_timestamp


def _pack_timestamp(timestamp):
    # Lower 24 bits big-endian, then the extension byte
    raw = struct.pack(">I", timestamp & 0xFFFFFFFF)
    return raw[1:] + raw[:1]


def read_metadata(source, tag):
    """Decode the onMetaData payload of a script tag from ``source``."""
    source.seek(tag.position + TAG_HEADER_SIZE)
    return FlvMetadata.from_bytes(source.read(tag.payload_size))


def _write_metadata_tag(destination, metadata):
    payload = metadata.to_bytes()
    destination.write(bytes([TagType.SCRIPT]))
    destination.write(len(payload).to_bytes(3, "big"))
    # timestamp, extension and stream id
    destination.write(b"\x00" * 7)
    destination.write(payload)
    destination.write(struct.pack(">I", TAG_HEADER_SIZE + len(payload)))


def write_segment(source, segment, path):
    """
    Write ``segment`` of the open ``source`` file to a new FLV at ``path``.

    Tags are copied verbatim apart from their timestamps, which are replaced
    by the corrected clock. The metadata duration is patched once the last
    tag is written.

    Args:
        source: Seekable binary stream of the original file.
        segment (Segment): Segment with a finalized jump table.
        path (str): Output file; must not exist yet.

    Returns:
        int: Last corrected timestamp in milliseconds.
    """
    metadata = read_metadata(source, segment.tags[0])

    last_timestamp = 0
    with open(path, "xb") as destination:
        try:
            destination.write(FLV_FILE_START)
            _write_metadata_tag(destination, metadata)

            for tag, corrected in iter_corrected(segment):
                source.seek(tag.position)
                # tag type and data size
                copy_bytes(source, destination, 4)
                source.seek(4, os.SEEK_CUR)
                destination.write(_pack_timestamp(corrected))
                # stream id, payload and the trailing previous-tag-size
                copy_bytes(source, destination, 3 + tag.payload_size + 4)
                last_timestamp = corrected

            destination.seek(DURATION_OFFSET)
            destination.write(struct.pack(">d", last_timestamp / 1000))
        except BaseException:
            # Remove the partial output
            destination.close()
            os.remove(path)
            raise

    return last_timestamp
