"""
rawadf - Extended ADF track toolkit.

Reads, writes and recombines Extended ("raw") ADF images, the UAE-1ADF
container that stores the raw tracks of an Amiga floppy capture. Two partial
captures of one disk can be merged into a complete image, tracks can be
extracted or replaced, and two captures can be compared track by track.
"""

__version__ = "1.0.0"
__license__ = "GPL-3.0-or-later"

from rawadf.imaging import (
    EADFError,
    EADFHeader,
    TrackRecord,
    TrackSource,
    TrackType,
    parse_header,
    serialize_header,
)
from rawadf.core import (
    SelectionPolicy,
    compare_images,
    merge_images,
    parse_track_specs,
    resolve_track_sources,
    split_image,
)

# Re-export main entry point
from rawadf.main import main

__all__ = [
    "main",
    "__version__",

    # Format
    "EADFError",
    "EADFHeader",
    "TrackRecord",
    "TrackSource",
    "TrackType",
    "parse_header",
    "serialize_header",

    # Operations
    "SelectionPolicy",
    "compare_images",
    "merge_images",
    "parse_track_specs",
    "resolve_track_sources",
    "split_image",
]
