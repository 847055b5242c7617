"""
flvfixer - repair tool for FLV live-stream recordings.

Live recorders that reconnect or buffer without starting a new file leave
several recordings, or jumping timestamps, inside one FLV file. This
package detects those problems and writes one corrected file per embedded
recording.
"""

__version__ = "0.1.0"
__license__ = "GPL-3.0"

from .amf import FlvMetadata
from .exceptions import FlvFixerError, FlvFormatError, AmfDecodeError, AmfEncodeError
from .flv_scanner import TagRecord, TagType, TagFlag, read_header, scan_tags
from .jump_detector import Segment, split_segments, detect_jumps, compute_offset
from .processor import FlvProcessor
from .chart_generator import generate_timestamp_chart

__all__ = [
    "FlvMetadata",
    "FlvFixerError",
    "FlvFormatError",
    "AmfDecodeError",
    "AmfEncodeError",
    "TagRecord",
    "TagType",
    "TagFlag",
    "read_header",
    "scan_tags",
    "Segment",
    "split_segments",
    "detect_jumps",
    "compute_offset",
    "FlvProcessor",
    "generate_timestamp_chart",
]
