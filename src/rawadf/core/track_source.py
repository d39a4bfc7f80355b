"""
Track source resolution.

For every output track index the functions here decide which input image
supplies it: SOURCE1, SOURCE2 or NONE. The decisions are plain tuples of
TrackSource values covering 0..max(count1, count2) and are consumed once by
the merge or split engine.

Policies:
    - MERGE: prefer non-empty tracks, source 1 wins ties
    - DOSMERGE: prefer DOS tracks, source 1 wins ties
    - REPLACE: source 1 except for explicitly listed tracks
    - SPLIT: explicitly listed tracks of a single source
"""

import logging
import re
from enum import Enum
from typing import AbstractSet, Iterable, Optional, Tuple

from rawadf.imaging.image_formats import (
    MAX_TRACKS,
    EADFHeader,
    TrackSource,
    TrackSpecError,
    TrackType,
)

logger = logging.getLogger(__name__)

Decisions = Tuple[TrackSource, ...]

_TRACK_SPEC_RE = re.compile(r'([0-9]+)(?:-([0-9]+))?')


class SelectionPolicy(Enum):
    """Closed set of track selection behaviours."""
    MERGE = "merge"
    DOSMERGE = "dosmerge"
    REPLACE = "replace"
    SPLIT = "split"


# =============================================================================
# Policies
# =============================================================================

def _union_count(header1: EADFHeader, header2: EADFHeader) -> int:
    return max(header1.num_tracks, header2.num_tracks)


def prefer_nonempty(header1: EADFHeader, header2: EADFHeader) -> Decisions:
    """
    Use source 1 unless its track is empty and source 2's is not.

    Tracks beyond the end of source 1 come from source 2; tracks beyond the
    end of source 2 come from source 1.
    """
    count1 = header1.num_tracks
    count2 = header2.num_tracks
    decisions = []
    for i in range(_union_count(header1, header2)):
        if (i >= count2
                or (i < count1 and header1.track(i).size_bytes > 0)
                or (i < count1 and header2.track(i).size_bytes == 0)):
            decisions.append(TrackSource.SOURCE1)
        else:
            decisions.append(TrackSource.SOURCE2)
    return tuple(decisions)


def prefer_dos(header1: EADFHeader, header2: EADFHeader) -> Decisions:
    """Use source 1 unless its track is RAW and source 2's is DOS."""
    count1 = header1.num_tracks
    count2 = header2.num_tracks
    decisions = []
    for i in range(_union_count(header1, header2)):
        if (i >= count2
                or (i < count1
                    and (header1.track(i).track_type == TrackType.DOS
                         or header2.track(i).track_type == TrackType.RAW))):
            decisions.append(TrackSource.SOURCE1)
        else:
            decisions.append(TrackSource.SOURCE2)
    return tuple(decisions)


def explicit_override(header1: EADFHeader, header2: EADFHeader,
                      replaced: AbstractSet[int]) -> Decisions:
    """Source 1 everywhere except the replaced indices, which use source 2."""
    return tuple(
        TrackSource.SOURCE2 if i in replaced else TrackSource.SOURCE1
        for i in range(_union_count(header1, header2))
    )


def explicit_subset(header: EADFHeader, included: AbstractSet[int]) -> Decisions:
    """Included indices use source 1; every other slot is left empty."""
    return tuple(
        TrackSource.SOURCE1 if i in included else TrackSource.NONE
        for i in range(header.num_tracks)
    )


def resolve_track_sources(policy: SelectionPolicy, header1: EADFHeader,
                          header2: Optional[EADFHeader] = None,
                          tracks: AbstractSet[int] = frozenset()) -> Decisions:
    """
    Compute the decision sequence for a named policy.

    Args:
        policy: Selection policy
        header1: First (or only) source header
        header2: Second source header (all policies except SPLIT)
        tracks: Validated track indices for REPLACE and SPLIT

    Returns:
        Tuple of TrackSource, one per output track
    """
    if policy is SelectionPolicy.SPLIT:
        decisions = explicit_subset(header1, tracks)
    else:
        if header2 is None:
            raise ValueError(f"Policy {policy.value} needs two source headers")
        if policy is SelectionPolicy.MERGE:
            decisions = prefer_nonempty(header1, header2)
        elif policy is SelectionPolicy.DOSMERGE:
            decisions = prefer_dos(header1, header2)
        else:
            decisions = explicit_override(header1, header2, tracks)

    logger.debug(
        "%s: %d tracks, %d from source 1, %d from source 2",
        policy.value, len(decisions),
        decisions.count(TrackSource.SOURCE1),
        decisions.count(TrackSource.SOURCE2),
    )
    return decisions


# =============================================================================
# Track Spec Parsing
# =============================================================================

def parse_track_spec(spec: str) -> range:
    """
    Parse a single track spec.

    A spec is either a track number ("35") or an inclusive ascending range
    ("57-59"), base 10, with every track below MAX_TRACKS.

    Raises:
        TrackSpecError: For any other form or out-of-range value
    """
    match = _TRACK_SPEC_RE.fullmatch(spec)
    if match is None:
        raise TrackSpecError("Invalid track specification", spec)

    first = int(match.group(1))
    last = int(match.group(2)) if match.group(2) is not None else first

    if first >= MAX_TRACKS or last >= MAX_TRACKS:
        raise TrackSpecError(
            f"Invalid track specification (tracks must be below {MAX_TRACKS})", spec
        )
    if last < first:
        raise TrackSpecError("Invalid track specification (descending range)", spec)

    return range(first, last + 1)


def parse_track_specs(specs: Iterable[str]) -> frozenset:
    """Union of the tracks selected by several specs."""
    tracks = set()
    for spec in specs:
        tracks.update(parse_track_spec(spec))
    return frozenset(tracks)
