"""
Test fixtures for rawadf.

Provides mock Extended ADF images and faulty streams for testing without
real disk captures.
"""

from tests.fixtures.mock_images import (
    MockTrack,
    make_payload,
    build_image,
    open_image,
    track_payload,
    create_raw_image,
    create_sparse_image,
    create_mixed_image,
    FailingReadStream,
    FailingSeekStream,
    ShortWriteStream,
    FailingWriteStream,
)

__all__ = [
    "MockTrack",
    "make_payload",
    "build_image",
    "open_image",
    "track_payload",
    "create_raw_image",
    "create_sparse_image",
    "create_mixed_image",
    "FailingReadStream",
    "FailingSeekStream",
    "ShortWriteStream",
    "FailingWriteStream",
]
