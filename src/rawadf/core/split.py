"""
Extract a subset of tracks from an Extended ADF image.

The destination keeps the source's track count. Included tracks keep their
record and payload byte for byte; every other slot becomes an empty RAW
track with no payload, so the destination is smaller than the source even
though the track table has the same shape.
"""

import logging
from typing import AbstractSet, BinaryIO, Optional, Sequence

from rawadf.core.copy_engine import CopyResult, write_image
from rawadf.core.track_source import explicit_subset
from rawadf.imaging.image_formats import (
    DEFAULT_BUFFER_SIZE,
    EADFHeader,
    TrackSource,
)
from rawadf.utils.logging import log_operation

logger = logging.getLogger(__name__)


def split_image(header: EADFHeader, stream: BinaryIO,
                decisions: Sequence[TrackSource], destination: BinaryIO,
                buffer_size: int = DEFAULT_BUFFER_SIZE) -> CopyResult:
    """
    Copy the tracks selected by decisions into destination.

    Only SOURCE1 marks a track as included; SOURCE2 and NONE both leave the
    slot empty.

    Raises:
        ValueError: decisions is shorter than the source track count
        TruncatedError, ReadError, WriteError, SeekError: I/O failure
    """
    included = tuple(
        TrackSource.SOURCE1 if decision is TrackSource.SOURCE1 else TrackSource.NONE
        for decision in decisions
    )
    result = write_image(included, destination, header, stream,
                         buffer_size=buffer_size, operation="split")

    log_operation(
        "split",
        f"kept {len(result.tracks_from[TrackSource.SOURCE1])} of "
        f"{result.num_tracks} tracks, {result.total_bytes} bytes written",
    )
    return result


def split_tracks(header: EADFHeader, stream: BinaryIO, included: AbstractSet[int],
                 destination: BinaryIO,
                 buffer_size: Optional[int] = None) -> CopyResult:
    """Split keeping the given track indices."""
    return split_image(header, stream, explicit_subset(header, included),
                       destination, buffer_size or DEFAULT_BUFFER_SIZE)
