"""
Exception classes for flvfixer.

Every error that makes a single input file unusable derives from
FlvFixerError, so a batch run can report it and move on to the next file.
Truncated input is not an error: scanning simply stops at the last
complete tag.
"""


class FlvFixerError(Exception):
    """Base exception for all flvfixer errors."""


class FlvFormatError(FlvFixerError):
    """
    Raised when the input is not a usable FLV file.

    This exception is raised when:
    - The signature is not ``FLV`` or the version is not 1
    - The header length field is not 9
    - The file has no tags, or the first tag is not a metadata tag
    """


class AmfDecodeError(FlvFixerError):
    """Raised when a metadata tag cannot be decoded as an AMF0 onMetaData block."""


class AmfEncodeError(FlvFixerError):
    """Raised when a metadata value has no AMF0 representation."""
