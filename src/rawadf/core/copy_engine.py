"""
Two-phase image writer used by merge and split.

Phase 1 writes the complete header block (magic, count and every record)
before any payload, since the on-disk layout needs all metadata up front.
Phase 2 copies the payload of each selected track, in ascending index
order, from its recorded offset in the selected source.

The writer is single pass and non-resumable. If it fails part way the
destination holds a partial image; cleaning that up is the caller's job.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional, Sequence

from rawadf.core.stream_io import copy_range, stream_name, write_all
from rawadf.imaging.image_formats import (
    DEFAULT_BUFFER_SIZE,
    EADFHeader,
    TrackSource,
    iter_header_chunks,
    output_track_count,
)
from rawadf.utils.logging import log_performance

logger = logging.getLogger(__name__)


@dataclass
class CopyResult:
    """
    Result of writing a destination image.

    Attributes:
        num_tracks: Track count of the destination
        header_bytes: Size of the header block written
        payload_bytes: Track payload bytes copied
        tracks_from: Output indices taken from each source
    """
    num_tracks: int = 0
    header_bytes: int = 0
    payload_bytes: int = 0
    tracks_from: Dict[TrackSource, List[int]] = field(default_factory=lambda: {
        TrackSource.SOURCE1: [],
        TrackSource.SOURCE2: [],
        TrackSource.NONE: [],
    })

    @property
    def total_bytes(self) -> int:
        return self.header_bytes + self.payload_bytes

    @property
    def empty_tracks(self) -> List[int]:
        return self.tracks_from[TrackSource.NONE]


def write_image(decisions: Sequence[TrackSource], destination: BinaryIO,
                header1: EADFHeader, stream1: BinaryIO,
                header2: Optional[EADFHeader] = None,
                stream2: Optional[BinaryIO] = None,
                buffer_size: int = DEFAULT_BUFFER_SIZE,
                operation: str = "write_image") -> CopyResult:
    """
    Write a destination image from one or two sources.

    Args:
        decisions: One TrackSource per destination track
        destination: Writable binary stream, positioned at the image start
        header1, stream1: First source
        header2, stream2: Optional second source
        buffer_size: Window for header flushes and payload copies
        operation: Name used in log output

    Returns:
        CopyResult describing what was written

    Raises:
        TruncatedError: A source ended inside a track payload
        ReadError, WriteError, SeekError: A stream failed
    """
    if header2 is not None and stream2 is None:
        raise ValueError("Second header given without a second stream")

    start_time = time.monotonic()
    destination_name = stream_name(destination)
    result = CopyResult(num_tracks=output_track_count(header1, header2))

    # Phase 1: header block
    for chunk in iter_header_chunks(decisions, header1, header2, buffer_size):
        result.header_bytes += write_all(destination, chunk, destination_name,
                                         result.header_bytes)

    # Phase 2: payloads in index order
    sources = {
        TrackSource.SOURCE1: (header1, stream1),
        TrackSource.SOURCE2: (header2, stream2),
    }
    for index in range(result.num_tracks):
        decision = decisions[index]
        header, stream = sources.get(decision, (None, None))

        if header is None or not header.has_track(index):
            # Record already declares zero length
            result.tracks_from[TrackSource.NONE].append(index)
            continue

        size = header.track(index).size_bytes
        logger.debug("%s: track %d from %s (%d bytes at offset %d)",
                     operation, index, header.source or decision.name,
                     size, header.offset(index))
        result.payload_bytes += copy_range(
            stream, destination, header.offset(index), size,
            buffer_size=buffer_size,
            source_name=header.source,
            destination_name=destination_name,
            destination_offset=result.total_bytes,
        )
        result.tracks_from[decision].append(index)

    log_performance(operation, time.monotonic() - start_time,
                    tracks=result.num_tracks, bytes=result.total_bytes)
    return result
