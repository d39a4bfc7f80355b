"""
Merge two Extended ADF images into one.

The destination has max(count1, count2) tracks. Each track comes from the
source named by the decision sequence; a track whose selected source does
not have it is written as an empty RAW track.
"""

import logging
from typing import AbstractSet, BinaryIO, Optional, Sequence

from rawadf.core.copy_engine import CopyResult, write_image
from rawadf.core.track_source import SelectionPolicy, resolve_track_sources
from rawadf.imaging.image_formats import (
    DEFAULT_BUFFER_SIZE,
    EADFHeader,
    TrackSource,
)
from rawadf.utils.logging import log_operation

logger = logging.getLogger(__name__)


def merge_images(header1: EADFHeader, stream1: BinaryIO,
                 header2: EADFHeader, stream2: BinaryIO,
                 decisions: Sequence[TrackSource], destination: BinaryIO,
                 buffer_size: int = DEFAULT_BUFFER_SIZE) -> CopyResult:
    """
    Merge two images according to a decision sequence.

    Args:
        header1, stream1: First source image
        header2, stream2: Second source image
        decisions: One TrackSource per index in 0..max(count1, count2)
        destination: Writable stream receiving the merged image
        buffer_size: Streaming window size

    Returns:
        CopyResult for the merged image

    Raises:
        ValueError: decisions is shorter than the destination track count
        TruncatedError, ReadError, WriteError, SeekError: I/O failure
    """
    result = write_image(decisions, destination, header1, stream1,
                         header2, stream2, buffer_size=buffer_size,
                         operation="merge")

    log_operation(
        "merge",
        f"{result.num_tracks} tracks "
        f"({len(result.tracks_from[TrackSource.SOURCE1])} from source 1, "
        f"{len(result.tracks_from[TrackSource.SOURCE2])} from source 2), "
        f"{result.total_bytes} bytes written",
    )
    return result


def merge_with_policy(policy: SelectionPolicy,
                      header1: EADFHeader, stream1: BinaryIO,
                      header2: EADFHeader, stream2: BinaryIO,
                      destination: BinaryIO,
                      tracks: AbstractSet[int] = frozenset(),
                      buffer_size: Optional[int] = None) -> CopyResult:
    """Resolve a merge-type policy and merge with the result."""
    if policy is SelectionPolicy.SPLIT:
        raise ValueError("SPLIT is not a merge policy")

    decisions = resolve_track_sources(policy, header1, header2, tracks)
    return merge_images(header1, stream1, header2, stream2, decisions,
                        destination, buffer_size or DEFAULT_BUFFER_SIZE)
