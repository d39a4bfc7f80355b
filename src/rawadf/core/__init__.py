"""
Core operations on Extended ADF images.

This package provides track source resolution, the merge and split
engines, track comparison and settings management. Every operation works
on streams the caller has already opened; none of them closes a stream.
"""

from rawadf.core.track_source import (
    Decisions,
    SelectionPolicy,
    prefer_nonempty,
    prefer_dos,
    explicit_override,
    explicit_subset,
    resolve_track_sources,
    parse_track_spec,
    parse_track_specs,
)

from rawadf.core.comparator import (
    TrackComparison,
    ComparisonReport,
    tracks_equal,
    count_differing_bytes,
    compare_images,
)

from rawadf.core.copy_engine import (
    CopyResult,
    write_image,
)

from rawadf.core.merge import (
    merge_images,
    merge_with_policy,
)

from rawadf.core.split import (
    split_image,
    split_tracks,
)

from rawadf.core.settings import (
    Settings,
    load_settings,
    save_settings,
    get_settings_dir,
    get_settings_file,
)

__all__ = [
    # Track sources
    "Decisions",
    "SelectionPolicy",
    "prefer_nonempty",
    "prefer_dos",
    "explicit_override",
    "explicit_subset",
    "resolve_track_sources",
    "parse_track_spec",
    "parse_track_specs",

    # Comparison
    "TrackComparison",
    "ComparisonReport",
    "tracks_equal",
    "count_differing_bytes",
    "compare_images",

    # Merge / split
    "CopyResult",
    "write_image",
    "merge_images",
    "merge_with_policy",
    "split_image",
    "split_tracks",

    # Settings
    "Settings",
    "load_settings",
    "save_settings",
    "get_settings_dir",
    "get_settings_file",
]
