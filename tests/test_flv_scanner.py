"""
Tests for FLV header validation and tag scanning.
"""

import io
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from flv_samples import audio, build_flv, metadata, video
from flvfixer.exceptions import FlvFormatError
from flvfixer.flv_scanner import TagFlag, TagType, read_header, scan_tags


def _scan(data):
    stream = io.BytesIO(data)
    read_header(stream)
    return scan_tags(stream)


def test_missing_signature_is_rejected_before_scanning():
    stream = io.BytesIO(b"MP4" + build_flv([metadata()])[3:])
    with pytest.raises(FlvFormatError):
        read_header(stream)
    assert stream.tell() <= 9


def test_wrong_version_is_rejected():
    data = bytearray(build_flv([metadata()]))
    data[3] = 2
    with pytest.raises(FlvFormatError):
        read_header(io.BytesIO(bytes(data)))


def test_wrong_header_length_is_rejected():
    data = bytearray(build_flv([metadata()]))
    data[8] = 10
    with pytest.raises(FlvFormatError):
        read_header(io.BytesIO(bytes(data)))


def test_short_header_is_rejected():
    with pytest.raises(FlvFormatError):
        read_header(io.BytesIO(b"FLV\x01"))


def test_first_tag_must_be_metadata():
    with pytest.raises(FlvFormatError):
        _scan(build_flv([video(0), metadata()]))


def test_file_without_tags_is_rejected():
    with pytest.raises(FlvFormatError):
        _scan(build_flv([]))


def test_tags_are_read_in_file_order():
    data = build_flv([metadata(), audio(0), video(0, keyframe=True), audio(23), video(40)])
    tags = _scan(data)

    assert [t.tag_type for t in tags] == [
        TagType.SCRIPT, TagType.AUDIO, TagType.VIDEO, TagType.AUDIO, TagType.VIDEO]
    assert [t.timestamp for t in tags] == [0, 0, 0, 23, 40]
    positions = [t.position for t in tags]
    assert positions == sorted(positions)
    # type byte of the first tag sits right after the header and first previous-tag-size
    assert positions[0] == 13
    assert data[positions[2]] == 9


def test_payload_sizes_are_recorded():
    tags = _scan(build_flv([metadata(), video(0, size=100), audio(0, size=7)]))
    assert tags[1].payload_size == 100
    assert tags[2].payload_size == 7


def test_video_flags():
    tags = _scan(build_flv([
        metadata(),
        video(0, keyframe=True, header=True),
        video(0, keyframe=True),
        video(40),
        video(80, end=True),
    ]))

    assert tags[1].flags == TagFlag.KEYFRAME | TagFlag.HEADER
    assert tags[2].flags == TagFlag.KEYFRAME
    assert tags[3].flags == TagFlag.NONE
    assert tags[4].flags == TagFlag.END_OF_SEQUENCE


def test_audio_header_flag():
    tags = _scan(build_flv([metadata(), audio(0, header=True), audio(0)]))
    assert tags[1].is_header
    assert not tags[2].is_header


def test_extended_timestamp_byte():
    """The extension byte holds bits 24-31 and makes the value signed."""
    tags = _scan(build_flv([metadata(), video(0x01020304), video(-5)]))
    assert tags[1].timestamp == 0x01020304
    assert tags[2].timestamp == -5


def test_truncated_payload_ends_scan():
    data = build_flv([metadata(), video(0), video(40), video(80, size=200)])
    tags = _scan(data[:-100])
    assert [t.timestamp for t in tags] == [0, 0, 40]


def test_truncated_tag_header_ends_scan():
    data = build_flv([metadata(), video(0), video(40)])
    # drop the final previous-tag-size and half of the last tag
    tags = _scan(data[:-4 - 12])
    assert len(tags) == 2


def test_unknown_tag_type_ends_scan():
    data = bytearray(build_flv([metadata(), video(0), video(40), video(80)]))
    tags = _scan(bytes(data))
    data[tags[2].position] = 0x42
    tags = _scan(bytes(data))
    assert len(tags) == 2


def test_describe():
    tags = _scan(build_flv([metadata(), video(120, keyframe=True)]))
    assert tags[1].describe() == f"V, K---, TS = 120, Size = 12, Pos = {tags[1].position}"
