"""
Buffered skip/copy helpers for binary streams.

Each call works with its own scratch buffer, so the helpers hold no shared
state and are safe to use from several threads on different streams.
"""

BUFFER_SIZE = 4 * 1024


def skip_bytes(stream, length):
    """
    Read and discard ``length`` bytes from ``stream``.

    Args:
        stream: Readable binary stream.
        length (int): Number of bytes to skip.

    Returns:
        int: Number of bytes actually skipped. Less than ``length`` means
        the stream ended early.
    """
    if length < 0:
        raise ValueError("length must be non-negative")

    buffer = bytearray(min(length, BUFFER_SIZE))
    view = memoryview(buffer)
    total = 0
    while total < length:
        chunk = min(length - total, BUFFER_SIZE)
        read = stream.readinto(view[:chunk])
        if not read:
            break
        total += read
    return total


def copy_bytes(source, destination, length):
    """
    Copy exactly ``length`` bytes from ``source`` to ``destination``.

    Returns:
        bool: True if all bytes were copied, False if ``source`` ended first.
        Bytes read before the end are still written.
    """
    if length < 0:
        raise ValueError("length must be non-negative")

    buffer = bytearray(min(length, BUFFER_SIZE))
    view = memoryview(buffer)
    remaining = length
    while remaining > 0:
        chunk = min(remaining, BUFFER_SIZE)
        read = source.readinto(view[:chunk])
        if not read:
            return False
        destination.write(view[:read])
        remaining -= read
    return True
