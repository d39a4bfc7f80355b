"""
Extended ADF header codec.

This module parses and serializes the header block of Extended ("raw") ADF
images as written by rawread and WinUAE. An Extended ADF starts with a fixed
header followed by the raw track payloads in index order:

    Offset  Size        Field
    0       8           Magic "UAE-1ADF" (no terminator)
    8       4           Track count (big-endian, 0..166)
    12      count * 12  Track table: type, byte length, bit length
    ...                 Track payloads, concatenated

Every value in the header is an unsigned 32-bit big-endian integer. Track
offsets are not stored on disk; they are recomputed from the byte lengths on
every parse.
"""

import logging
import struct
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import BinaryIO, Iterator, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

EADF_MAGIC = b'UAE-1ADF'
MAGIC_SIZE = len(EADF_MAGIC)
COUNT_SIZE = 4

# Hard ceiling on the number of tracks in the track table
MAX_TRACKS = 166

# type + byte length + bit length
RECORD_SIZE = 12

# Default streaming window for header flushes and payload copies
DEFAULT_BUFFER_SIZE = 1024

U32_MAX = 0xFFFFFFFF

_U32 = struct.Struct('>I')
_RECORD = struct.Struct('>III')


# =============================================================================
# Custom Exceptions
# =============================================================================

class ErrorKind(Enum):
    """Tag carried by every EADF error."""
    WRONG_MAGIC = "wrong_magic"
    INVALID_TRACK_COUNT = "invalid_track_count"
    INVALID_TRACK_TYPE = "invalid_track_type"
    TRUNCATED = "truncated"
    READ = "read"
    WRITE = "write"
    SEEK = "seek"
    INVALID_TRACK_SPEC = "invalid_track_spec"


class EADFError(Exception):
    """Base exception for Extended ADF errors."""

    kind: ErrorKind

    def __init__(self, message: str, source: Optional[str] = None,
                 offset: Optional[int] = None):
        self.message = message
        self.source = source
        self.offset = offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.source:
            parts.append(f"[File: {self.source}]")
        if self.offset is not None:
            parts.append(f"[Offset: {self.offset}]")
        return " ".join(parts)


class FormatError(EADFError):
    """Raised when a stream does not hold a valid Extended ADF header."""
    pass


class WrongMagicError(FormatError):
    """Incorrect magic (is this really an extended ADF?)."""
    kind = ErrorKind.WRONG_MAGIC


class InvalidTrackCountError(FormatError):
    """Track count above MAX_TRACKS."""
    kind = ErrorKind.INVALID_TRACK_COUNT

    def __init__(self, message: str, source: Optional[str] = None,
                 offset: Optional[int] = None, count: Optional[int] = None):
        self.count = count
        super().__init__(message, source, offset)


class InvalidTrackTypeError(FormatError):
    """Track type code other than DOS (0) or RAW (1)."""
    kind = ErrorKind.INVALID_TRACK_TYPE

    def __init__(self, message: str, source: Optional[str] = None,
                 offset: Optional[int] = None, track: Optional[int] = None,
                 type_code: Optional[int] = None):
        self.track = track
        self.type_code = type_code
        super().__init__(message, source, offset)


class TruncatedError(FormatError):
    """Premature end-of-file."""
    kind = ErrorKind.TRUNCATED

    def __init__(self, message: str, source: Optional[str] = None,
                 offset: Optional[int] = None,
                 expected_size: Optional[int] = None,
                 actual_size: Optional[int] = None):
        self.expected_size = expected_size
        self.actual_size = actual_size
        super().__init__(message, source, offset)

    def _format_message(self) -> str:
        base = super()._format_message()
        if self.expected_size is not None and self.actual_size is not None:
            return f"{base} [Expected: {self.expected_size}, Actual: {self.actual_size}]"
        return base


class EADFIOError(EADFError):
    """Raised when the underlying stream fails."""
    pass


class ReadError(EADFIOError):
    """Error reading from file."""
    kind = ErrorKind.READ


class WriteError(EADFIOError):
    """Error writing to file."""
    kind = ErrorKind.WRITE


class SeekError(EADFIOError):
    """Error seeking in file."""
    kind = ErrorKind.SEEK


class TrackSpecError(EADFError):
    """Invalid track specification."""
    kind = ErrorKind.INVALID_TRACK_SPEC

    def __init__(self, message: str, spec: Optional[str] = None):
        self.spec = spec
        super().__init__(message)

    def _format_message(self) -> str:
        if self.spec is not None:
            return f"{self.message}: {self.spec!r}"
        return self.message


# =============================================================================
# Enums and Data Classes
# =============================================================================

class TrackType(IntEnum):
    """On-disk track encoding."""
    DOS = 0   # Decoded AmigaDOS track
    RAW = 1   # Unprocessed MFM bitstream


class TrackSource(Enum):
    """Which input supplies an output track."""
    NONE = 0
    SOURCE1 = 1
    SOURCE2 = 2


@dataclass(frozen=True)
class TrackRecord:
    """
    One entry of the track table.

    Attributes:
        track_type: DOS or RAW
        size_bytes: Payload length in bytes
        size_bits: Payload length in bits (RAW tracks need not be byte aligned)
    """
    track_type: TrackType
    size_bytes: int
    size_bits: int

    @property
    def is_empty(self) -> bool:
        return self.size_bytes == 0

    def to_bytes(self) -> bytes:
        return _RECORD.pack(int(self.track_type), self.size_bytes, self.size_bits)


EMPTY_RECORD = TrackRecord(TrackType.RAW, 0, 0)


@dataclass(frozen=True)
class EADFHeader:
    """
    Immutable snapshot of a parsed Extended ADF header.

    Attributes:
        tracks: Track table records in index order
        offsets: Absolute payload offset of each track
        source: Name of the stream the header came from (for messages)
        magic: Magic bytes as read
    """
    tracks: Tuple[TrackRecord, ...]
    offsets: Tuple[int, ...]
    source: Optional[str] = None
    magic: bytes = EADF_MAGIC

    @property
    def num_tracks(self) -> int:
        return len(self.tracks)

    @property
    def header_size(self) -> int:
        return header_size(self.num_tracks)

    @property
    def payload_size(self) -> int:
        return sum(record.size_bytes for record in self.tracks)

    @property
    def total_size(self) -> int:
        """Size of a well-formed image with this header."""
        return self.header_size + self.payload_size

    def has_track(self, index: int) -> bool:
        return 0 <= index < self.num_tracks

    def track(self, index: int) -> TrackRecord:
        return self.tracks[index]

    def offset(self, index: int) -> int:
        return self.offsets[index]

    @classmethod
    def from_records(cls, records: Sequence[TrackRecord],
                     source: Optional[str] = None) -> 'EADFHeader':
        """Build a header from a record list, deriving offsets."""
        if len(records) > MAX_TRACKS:
            raise InvalidTrackCountError(
                f"Invalid number of tracks ({len(records)} > {MAX_TRACKS})",
                source, count=len(records),
            )
        return cls(
            tracks=tuple(records),
            offsets=compute_offsets(records),
            source=source,
        )


# =============================================================================
# Big-Endian Helpers
# =============================================================================

def encode_u32(value: int) -> bytes:
    """Encode an unsigned 32-bit value as 4 big-endian bytes."""
    if not 0 <= value <= U32_MAX:
        raise ValueError(f"Value out of range for u32: {value}")
    return _U32.pack(value)


def decode_u32(data: bytes) -> int:
    """Decode 4 big-endian bytes as an unsigned 32-bit value."""
    if len(data) != 4:
        raise ValueError(f"Expected 4 bytes, got {len(data)}")
    return _U32.unpack(data)[0]


def header_size(num_tracks: int) -> int:
    """Size of the header block for a given track count."""
    return MAGIC_SIZE + COUNT_SIZE + num_tracks * RECORD_SIZE


def compute_offsets(records: Sequence[TrackRecord]) -> Tuple[int, ...]:
    """Running payload offsets starting right after the header block."""
    offsets = []
    position = header_size(len(records))
    for record in records:
        offsets.append(position)
        position += record.size_bytes
    return tuple(offsets)


# =============================================================================
# Parsing
# =============================================================================

def _read_field(stream: BinaryIO, size: int, what: str,
                source: Optional[str], offset: int) -> bytes:
    """Read exactly size bytes of a header field."""
    try:
        data = stream.read(size)
    except OSError as e:
        raise ReadError(f"Error reading {what}: {e}", source, offset) from e

    if data is None:
        data = b''
    if len(data) < size:
        raise TruncatedError(
            f"Premature end-of-file reading {what}", source, offset,
            expected_size=size, actual_size=len(data),
        )
    return data


def parse_header(stream: BinaryIO, source: Optional[str] = None) -> EADFHeader:
    """
    Parse an Extended ADF header from a stream.

    Reading starts at the stream's current position, which must be the
    start of the image.

    Args:
        stream: Readable binary stream
        source: Name used in error messages and log output

    Returns:
        Parsed EADFHeader

    Raises:
        WrongMagicError: Magic does not match "UAE-1ADF"
        InvalidTrackCountError: More than MAX_TRACKS tracks
        InvalidTrackTypeError: Track type other than DOS/RAW
        TruncatedError: Stream ended inside the header
        ReadError: Stream raised while reading
    """
    if source is None:
        source = getattr(stream, 'name', None)
        if not isinstance(source, str):
            source = None

    magic = _read_field(stream, MAGIC_SIZE, "magic", source, 0)
    if magic != EADF_MAGIC:
        raise WrongMagicError(
            "Incorrect magic (is this really an extended ADF?)", source, 0
        )

    count = decode_u32(_read_field(stream, COUNT_SIZE, "track count", source, MAGIC_SIZE))
    if count > MAX_TRACKS:
        raise InvalidTrackCountError(
            f"Invalid number of tracks ({count} > {MAX_TRACKS})",
            source, MAGIC_SIZE, count=count,
        )

    table_offset = MAGIC_SIZE + COUNT_SIZE
    table = _read_field(stream, count * RECORD_SIZE, "track table", source, table_offset)

    records = []
    for index, (type_code, size_bytes, size_bits) in enumerate(_RECORD.iter_unpack(table)):
        try:
            track_type = TrackType(type_code)
        except ValueError:
            raise InvalidTrackTypeError(
                f"Invalid track type {type_code} for track {index}",
                source, table_offset + index * RECORD_SIZE,
                track=index, type_code=type_code,
            ) from None
        records.append(TrackRecord(track_type, size_bytes, size_bits))

    header = EADFHeader(
        tracks=tuple(records),
        offsets=compute_offsets(records),
        source=source,
        magic=magic,
    )
    logger.debug("Parsed header of %s: %d tracks, %d payload bytes",
                 source or "(stream)", header.num_tracks, header.payload_size)
    return header


# =============================================================================
# Serialization
# =============================================================================

def select_record(decision: TrackSource, index: int, header1: EADFHeader,
                  header2: Optional[EADFHeader] = None) -> TrackRecord:
    """Record emitted for an output index given its decision."""
    if decision is TrackSource.SOURCE1 and header1.has_track(index):
        return header1.track(index)
    if decision is TrackSource.SOURCE2 and header2 is not None and header2.has_track(index):
        return header2.track(index)
    return EMPTY_RECORD


def output_track_count(header1: EADFHeader,
                       header2: Optional[EADFHeader] = None) -> int:
    if header2 is None:
        return header1.num_tracks
    return max(header1.num_tracks, header2.num_tracks)


def _check_decisions(decisions: Sequence[TrackSource], num_tracks: int) -> None:
    if len(decisions) < num_tracks:
        raise ValueError(
            f"Decision sequence covers {len(decisions)} tracks, "
            f"destination has {num_tracks}"
        )


def iter_header_chunks(decisions: Sequence[TrackSource], header1: EADFHeader,
                       header2: Optional[EADFHeader] = None,
                       buffer_size: int = DEFAULT_BUFFER_SIZE) -> Iterator[bytes]:
    """
    Build the destination header block incrementally.

    The block is accumulated in a buffer of buffer_size bytes; whenever the
    pending bytes exceed one record short of the capacity, the buffer is
    yielded and restarted. The final (possibly short) chunk is always
    yielded.
    """
    if buffer_size < 2 * RECORD_SIZE:
        raise ValueError(f"Buffer size too small: {buffer_size}")

    num_tracks = output_track_count(header1, header2)
    _check_decisions(decisions, num_tracks)

    buffer = bytearray(EADF_MAGIC)
    buffer += encode_u32(num_tracks)

    for index in range(num_tracks):
        buffer += select_record(decisions[index], index, header1, header2).to_bytes()
        if len(buffer) > buffer_size - RECORD_SIZE:
            yield bytes(buffer)
            buffer = bytearray()

    yield bytes(buffer)


def serialize_header(decisions: Sequence[TrackSource], header1: EADFHeader,
                     header2: Optional[EADFHeader] = None) -> bytes:
    """
    Serialize the destination header for a decision sequence.

    The output track count is max(count1, count2). Each record is copied
    from the selected source when that source has the track, and is
    (RAW, 0, 0) otherwise.
    """
    return b''.join(iter_header_chunks(decisions, header1, header2))


def destination_header(decisions: Sequence[TrackSource], header1: EADFHeader,
                       header2: Optional[EADFHeader] = None,
                       source: Optional[str] = None) -> EADFHeader:
    """In-memory header of the image a decision sequence produces."""
    num_tracks = output_track_count(header1, header2)
    _check_decisions(decisions, num_tracks)
    records = [select_record(decisions[i], i, header1, header2)
               for i in range(num_tracks)]
    return EADFHeader.from_records(records, source)


__all__ = [
    'EADF_MAGIC',
    'MAX_TRACKS',
    'RECORD_SIZE',
    'DEFAULT_BUFFER_SIZE',
    'U32_MAX',
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
    'TrackType',
    'TrackSource',
    'TrackRecord',
    'EMPTY_RECORD',
    'EADFHeader',
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
]
