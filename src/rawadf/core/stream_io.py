"""
Checked stream primitives shared by the merge, split and compare engines.

Each helper turns an OSError or a short transfer into the matching EADF
error, tagged with the stream name and the absolute offset involved. None
of them ever closes a stream.
"""

import logging
from typing import BinaryIO, Optional

from rawadf.imaging.image_formats import (
    DEFAULT_BUFFER_SIZE,
    ReadError,
    SeekError,
    TruncatedError,
    WriteError,
)

logger = logging.getLogger(__name__)


def stream_name(stream: BinaryIO, fallback: Optional[str] = None) -> Optional[str]:
    """Best-effort display name for a stream."""
    if fallback:
        return fallback
    name = getattr(stream, 'name', None)
    return name if isinstance(name, str) else None


def seek_to(stream: BinaryIO, offset: int, source: Optional[str] = None) -> None:
    """Seek to an absolute offset."""
    try:
        stream.seek(offset)
    except (OSError, ValueError) as e:
        raise SeekError(f"Error seeking in file: {e}", source, offset) from e


def read_exact(stream: BinaryIO, size: int, source: Optional[str] = None,
               offset: Optional[int] = None) -> bytes:
    """Read exactly size bytes or raise TruncatedError/ReadError."""
    try:
        data = stream.read(size)
    except OSError as e:
        raise ReadError(f"Error reading from file: {e}", source, offset) from e

    if data is None:
        data = b''
    if len(data) < size:
        raise TruncatedError(
            "Premature end-of-file", source, offset,
            expected_size=size, actual_size=len(data),
        )
    return data


def write_all(stream: BinaryIO, data: bytes, destination: Optional[str] = None,
              offset: Optional[int] = None) -> int:
    """Write data in full or raise WriteError."""
    try:
        written = stream.write(data)
    except OSError as e:
        raise WriteError(f"Error writing to file: {e}", destination, offset) from e

    # Raw streams may report None or a partial count
    if written is not None and written < len(data):
        raise WriteError(
            f"Error writing to file: short write ({written} of {len(data)} bytes)",
            destination, offset,
        )
    return len(data)


def copy_range(source: BinaryIO, destination: BinaryIO, offset: int, length: int,
               buffer_size: int = DEFAULT_BUFFER_SIZE,
               source_name: Optional[str] = None,
               destination_name: Optional[str] = None,
               destination_offset: Optional[int] = None) -> int:
    """
    Copy length bytes starting at offset in source to destination.

    The copy runs through a window of buffer_size bytes. Any short read is a
    hard failure; there is no partial-track tolerance.

    Returns:
        Number of bytes copied (always length)
    """
    if buffer_size <= 0:
        raise ValueError(f"Invalid buffer size: {buffer_size}")

    seek_to(source, offset, source_name)

    remaining = length
    position = offset
    out_position = destination_offset
    while remaining > 0:
        count = min(remaining, buffer_size)
        chunk = read_exact(source, count, source_name, position)
        write_all(destination, chunk, destination_name, out_position)
        remaining -= count
        position += count
        if out_position is not None:
            out_position += count

    return length
