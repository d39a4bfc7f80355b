"""
Track-by-track comparison of two Extended ADF images.

Two tracks are different if either image lacks the track, if their type,
byte length or bit length differ, or if any payload byte differs. Payloads
are streamed through a fixed-size window so large tracks never need to be
held in memory.
"""

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional

import numpy as np

from rawadf.core.stream_io import read_exact, seek_to
from rawadf.imaging.image_formats import (
    DEFAULT_BUFFER_SIZE,
    EMPTY_RECORD,
    EADFHeader,
    TrackRecord,
    TrackType,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class TrackComparison:
    """
    One row of a comparison report.

    A side that lacks the track is shown as RAW/0/0 and flagged through
    present1/present2; that is a difference, not an error.
    """
    index: int
    type1: TrackType
    bytes1: int
    bits1: int
    type2: TrackType
    bytes2: int
    bits2: int
    identical: bool
    present1: bool = True
    present2: bool = True
    differing_bytes: Optional[int] = None

    @property
    def cylinder(self) -> int:
        return self.index // 2

    @property
    def side(self) -> int:
        return self.index % 2 + 1


@dataclass
class ComparisonReport:
    """
    Result of comparing two images.

    Attributes:
        source1: Name of the first image
        source2: Name of the second image
        rows: One TrackComparison per index in 0..max(count1, count2)
    """
    source1: Optional[str]
    source2: Optional[str]
    rows: List[TrackComparison] = field(default_factory=list)

    @property
    def differing_tracks(self) -> List[int]:
        return [row.index for row in self.rows if not row.identical]

    @property
    def identical(self) -> bool:
        return not self.differing_tracks

    @property
    def summary(self) -> str:
        if self.identical:
            return f"Images are identical ({len(self.rows)} tracks)"

        missing1 = sum(1 for row in self.rows if not row.present1)
        missing2 = sum(1 for row in self.rows if not row.present2)
        different = len(self.differing_tracks) - missing1 - missing2

        parts = []
        if different > 0:
            parts.append(f"{different} different")
        if missing1:
            parts.append(f"{missing1} missing in first")
        if missing2:
            parts.append(f"{missing2} missing in second")
        return f"Images differ: {', '.join(parts)}"


# =============================================================================
# Comparison
# =============================================================================

def _metadata_equal(header1: EADFHeader, header2: EADFHeader, index: int) -> bool:
    if not (header1.has_track(index) and header2.has_track(index)):
        return False
    return header1.track(index) == header2.track(index)


def _iter_payload_windows(header1: EADFHeader, stream1: BinaryIO,
                          header2: EADFHeader, stream2: BinaryIO,
                          index: int, buffer_size: int):
    """
    Yield matching payload windows of a track from both streams.

    Both streams are re-seeked for every window, so stream1 and stream2 may
    be the same object.
    """
    if buffer_size <= 0:
        raise ValueError(f"Invalid buffer size: {buffer_size}")

    offset1 = header1.offset(index)
    offset2 = header2.offset(index)

    remaining = header1.track(index).size_bytes
    done = 0
    while remaining > 0:
        count = min(remaining, buffer_size)
        seek_to(stream1, offset1 + done, header1.source)
        chunk1 = read_exact(stream1, count, header1.source, offset1 + done)
        seek_to(stream2, offset2 + done, header2.source)
        chunk2 = read_exact(stream2, count, header2.source, offset2 + done)
        yield chunk1, chunk2
        remaining -= count
        done += count


def tracks_equal(header1: EADFHeader, stream1: BinaryIO,
                 header2: EADFHeader, stream2: BinaryIO, index: int,
                 buffer_size: int = DEFAULT_BUFFER_SIZE) -> bool:
    """
    Check whether track index is identical in both images.

    Raises:
        TruncatedError: A payload ends before its recorded length
        ReadError, SeekError: The underlying stream failed
    """
    if not _metadata_equal(header1, header2, index):
        return False

    for chunk1, chunk2 in _iter_payload_windows(header1, stream1, header2,
                                                stream2, index, buffer_size):
        if chunk1 != chunk2:
            return False
    return True


def count_differing_bytes(header1: EADFHeader, stream1: BinaryIO,
                          header2: EADFHeader, stream2: BinaryIO, index: int,
                          buffer_size: int = DEFAULT_BUFFER_SIZE) -> Optional[int]:
    """
    Count payload bytes that differ between two tracks.

    Returns None when the track metadata differs (lengths cannot be lined up).
    """
    if not _metadata_equal(header1, header2, index):
        return None

    total = 0
    for chunk1, chunk2 in _iter_payload_windows(header1, stream1, header2,
                                                stream2, index, buffer_size):
        a = np.frombuffer(chunk1, dtype=np.uint8)
        b = np.frombuffer(chunk2, dtype=np.uint8)
        total += int(np.count_nonzero(a != b))
    return total


def _side(header: EADFHeader, index: int) -> TrackRecord:
    if header.has_track(index):
        return header.track(index)
    return EMPTY_RECORD


def compare_images(header1: EADFHeader, stream1: BinaryIO,
                   header2: EADFHeader, stream2: BinaryIO,
                   buffer_size: int = DEFAULT_BUFFER_SIZE,
                   count_bytes: bool = False) -> ComparisonReport:
    """
    Compare every track of two images.

    Args:
        header1, stream1: First image
        header2, stream2: Second image
        buffer_size: Streaming window size
        count_bytes: Also count differing payload bytes per track

    Returns:
        ComparisonReport with one row per index in 0..max(count1, count2)
    """
    report = ComparisonReport(source1=header1.source, source2=header2.source)
    num_tracks = max(header1.num_tracks, header2.num_tracks)

    for index in range(num_tracks):
        record1 = _side(header1, index)
        record2 = _side(header2, index)

        identical = tracks_equal(header1, stream1, header2, stream2, index, buffer_size)
        differing = None
        if count_bytes and not identical:
            differing = count_differing_bytes(header1, stream1, header2, stream2,
                                              index, buffer_size)
        elif count_bytes and _metadata_equal(header1, header2, index):
            differing = 0

        report.rows.append(TrackComparison(
            index=index,
            type1=record1.track_type,
            bytes1=record1.size_bytes,
            bits1=record1.size_bits,
            type2=record2.track_type,
            bytes2=record2.size_bytes,
            bits2=record2.size_bits,
            identical=identical,
            present1=header1.has_track(index),
            present2=header2.has_track(index),
            differing_bytes=differing,
        ))

        if not identical:
            logger.debug("Track %d differs", index)

    logger.info("Compared %s with %s: %s", header1.source or "(stream)",
                header2.source or "(stream)", report.summary)
    return report
