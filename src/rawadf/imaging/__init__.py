"""
Extended ADF format support.

The codec reads the fixed UAE-1ADF header (magic, track count and the
12-byte track records), derives the payload offset of every track and
builds destination headers from one or two parsed sources.

Example Usage:
    from rawadf.imaging import parse_header
    with open("disk.adf", "rb") as f:
        header = parse_header(f)
    print(header.num_tracks, header.offset(0))
"""

from .image_formats import (
    # Exceptions
    ErrorKind,
    EADFError,
    FormatError,
    WrongMagicError,
    InvalidTrackCountError,
    InvalidTrackTypeError,
    TruncatedError,
    EADFIOError,
    ReadError,
    WriteError,
    SeekError,
    TrackSpecError,
    # Enums
    TrackType,
    TrackSource,
    # Data classes
    TrackRecord,
    EADFHeader,
    EMPTY_RECORD,
    # Functions
    encode_u32,
    decode_u32,
    header_size,
    compute_offsets,
    parse_header,
    select_record,
    output_track_count,
    iter_header_chunks,
    serialize_header,
    destination_header,
    # Constants
    EADF_MAGIC,
    MAX_TRACKS,
    RECORD_SIZE,
    DEFAULT_BUFFER_SIZE,
    U32_MAX,
)


__all__ = [
    # ==========================================================================
    # Exceptions
    # ==========================================================================
    'ErrorKind',
    'EADFError',
    'FormatError',
    'WrongMagicError',
    'InvalidTrackCountError',
    'InvalidTrackTypeError',
    'TruncatedError',
    'EADFIOError',
    'ReadError',
    'WriteError',
    'SeekError',
    'TrackSpecError',

    # ==========================================================================
    # Enums and Data Classes
    # ==========================================================================
    'TrackType',
    'TrackSource',
    'TrackRecord',
    'EADFHeader',
    'EMPTY_RECORD',

    # ==========================================================================
    # Codec
    # ==========================================================================
    'encode_u32',
    'decode_u32',
    'header_size',
    'compute_offsets',
    'parse_header',
    'select_record',
    'output_track_count',
    'iter_header_chunks',
    'serialize_header',
    'destination_header',

    # ==========================================================================
    # Constants
    # ==========================================================================
    'EADF_MAGIC',
    'MAX_TRACKS',
    'RECORD_SIZE',
    'DEFAULT_BUFFER_SIZE',
    'U32_MAX',
]
