"""
Unit tests for the Extended ADF header codec.

Tests big-endian helpers, header parsing with its failure modes, and
destination header serialization.
"""

import io
import struct

import pytest

from rawadf.imaging import (
    EADF_MAGIC,
    EMPTY_RECORD,
    MAX_TRACKS,
    RECORD_SIZE,
    U32_MAX,
    EADFHeader,
    ErrorKind,
    InvalidTrackCountError,
    InvalidTrackTypeError,
    ReadError,
    TrackRecord,
    TrackSource,
    TrackType,
    TruncatedError,
    WrongMagicError,
    decode_u32,
    destination_header,
    encode_u32,
    header_size,
    iter_header_chunks,
    parse_header,
    serialize_header,
)
from tests.fixtures import (
    FailingReadStream,
    MockTrack,
    build_image,
    create_raw_image,
    open_image,
)


class TestBigEndian:
    """Test encode_u32() / decode_u32()."""

    @pytest.mark.parametrize("value", [
        0, 1, 0x7F, 0x80, 0xFF, 0x100, 0x1234, 0xFFFF, 0x10000,
        0x12345678, 0x7FFFFFFF, 0x80000000, 0xDEADBEEF, U32_MAX,
    ])
    def test_round_trip(self, value):
        """Test decode(encode(v)) == v."""
        assert decode_u32(encode_u32(value)) == value

    def test_encoding_is_big_endian(self):
        """Test most significant byte comes first."""
        assert encode_u32(0x01020304) == b'\x01\x02\x03\x04'
        assert decode_u32(b'\x00\x00\x00\xa6') == 166

    @pytest.mark.parametrize("value", [-1, U32_MAX + 1])
    def test_encode_out_of_range(self, value):
        with pytest.raises(ValueError):
            encode_u32(value)

    def test_decode_wrong_length(self):
        with pytest.raises(ValueError):
            decode_u32(b'\x00\x01')


class TestParseHeader:
    """Test parse_header()."""

    def test_parse_simple_image(self):
        """Test track table and offsets of a small image."""
        tracks = [
            MockTrack.raw(100),
            MockTrack.dos(50),
            MockTrack.empty(),
            MockTrack(TrackType.RAW, b'\x01' * 10, size_bits=77),
        ]
        header = parse_header(open_image(tracks))

        assert header.num_tracks == 4
        assert header.track(0) == TrackRecord(TrackType.RAW, 100, 800)
        assert header.track(1) == TrackRecord(TrackType.DOS, 50, 400)
        assert header.track(2) == EMPTY_RECORD
        assert header.track(3).size_bits == 77

    def test_offsets_follow_header(self):
        """Test offset[i] = 12 + count*12 + sum(bytes[0..i))."""
        tracks = [MockTrack.raw(100), MockTrack.raw(0), MockTrack.raw(30), MockTrack.raw(5)]
        header = parse_header(open_image(tracks))

        base = 8 + 4 + 4 * 12
        assert header.header_size == base
        assert header.offsets == (base, base + 100, base + 100, base + 130)

    def test_offsets_locate_payloads(self):
        """Test each offset points at the matching payload."""
        tracks = create_raw_image(6, size=300)
        data = build_image(tracks)
        header = parse_header(io.BytesIO(data))

        for i, track in enumerate(tracks):
            start = header.offset(i)
            assert data[start:start + 300] == track.data

    def test_parse_zero_tracks(self):
        header = parse_header(open_image([]))

        assert header.num_tracks == 0
        assert header.header_size == 12
        assert header.total_size == 12

    def test_parse_max_tracks(self):
        """Test 166 tracks is accepted."""
        header = parse_header(open_image(create_raw_image(MAX_TRACKS, size=4)))
        assert header.num_tracks == MAX_TRACKS

    def test_too_many_tracks(self):
        """Test 167 tracks is rejected before the table is read."""
        data = EADF_MAGIC + struct.pack('>I', MAX_TRACKS + 1)

        with pytest.raises(InvalidTrackCountError) as exc_info:
            parse_header(io.BytesIO(data))

        assert exc_info.value.count == MAX_TRACKS + 1
        assert exc_info.value.kind is ErrorKind.INVALID_TRACK_COUNT

    def test_wrong_magic(self):
        data = build_image(create_raw_image(2), magic=b'UAE--ADF')

        with pytest.raises(WrongMagicError) as exc_info:
            parse_header(io.BytesIO(data), "plain.adf")

        assert exc_info.value.source == "plain.adf"
        assert exc_info.value.offset == 0

    def test_invalid_track_type(self):
        data = bytearray(build_image(create_raw_image(3, size=8)))
        # Type field of track 1
        data[12 + 12:12 + 16] = struct.pack('>I', 2)

        with pytest.raises(InvalidTrackTypeError) as exc_info:
            parse_header(io.BytesIO(bytes(data)))

        assert exc_info.value.track == 1
        assert exc_info.value.type_code == 2
        assert exc_info.value.offset == 12 + RECORD_SIZE

    def test_truncated_magic(self):
        with pytest.raises(TruncatedError):
            parse_header(io.BytesIO(b'UAE-'))

    def test_truncated_count(self):
        with pytest.raises(TruncatedError):
            parse_header(io.BytesIO(EADF_MAGIC + b'\x00\x00'))

    def test_truncated_track_table(self):
        data = build_image(create_raw_image(4, size=8))
        header_only = data[:12 + 2 * RECORD_SIZE + 5]

        with pytest.raises(TruncatedError) as exc_info:
            parse_header(io.BytesIO(header_only))

        assert exc_info.value.expected_size == 4 * RECORD_SIZE
        assert exc_info.value.actual_size == 2 * RECORD_SIZE + 5

    def test_payload_not_checked(self):
        """Test a short payload does not fail parsing (only copying)."""
        data = build_image(create_raw_image(2, size=100))
        header = parse_header(io.BytesIO(data[:-50]))
        assert header.num_tracks == 2

    def test_read_error(self):
        data = build_image(create_raw_image(2))
        stream = FailingReadStream(data, fail_at=10)

        with pytest.raises(ReadError) as exc_info:
            parse_header(stream, "bad.adf")

        assert exc_info.value.kind is ErrorKind.READ
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_source_defaults_to_stream_name(self):
        stream = open_image(create_raw_image(1), name="disk.adf")
        assert parse_header(stream).source == "disk.adf"

    def test_header_is_immutable(self):
        header = parse_header(open_image(create_raw_image(1)))
        with pytest.raises(AttributeError):
            header.tracks = ()


class TestSerializeHeader:
    """Test serialize_header() and iter_header_chunks()."""

    def _headers(self):
        header1 = EADFHeader.from_records([
            TrackRecord(TrackType.RAW, 100, 800),
            TrackRecord(TrackType.DOS, 50, 400),
        ])
        header2 = EADFHeader.from_records([
            TrackRecord(TrackType.DOS, 10, 80),
            TrackRecord(TrackType.RAW, 20, 160),
            TrackRecord(TrackType.DOS, 30, 240),
        ])
        return header1, header2

    def test_layout(self):
        header1, header2 = self._headers()
        decisions = (TrackSource.SOURCE1, TrackSource.SOURCE2, TrackSource.SOURCE2)

        data = serialize_header(decisions, header1, header2)

        assert data[:8] == EADF_MAGIC
        assert decode_u32(data[8:12]) == 3
        assert len(data) == header_size(3)
        assert struct.unpack('>III', data[12:24]) == (1, 100, 800)
        assert struct.unpack('>III', data[24:36]) == (1, 20, 160)
        assert struct.unpack('>III', data[36:48]) == (0, 30, 240)

    def test_missing_track_is_empty_raw(self):
        """Test selecting a source that lacks the track emits (RAW, 0, 0)."""
        header1, header2 = self._headers()
        decisions = (TrackSource.SOURCE1, TrackSource.NONE, TrackSource.SOURCE1)

        data = serialize_header(decisions, header1, header2)

        assert struct.unpack('>III', data[24:36]) == (1, 0, 0)
        assert struct.unpack('>III', data[36:48]) == (1, 0, 0)

    def test_single_source(self):
        header1, _ = self._headers()
        data = serialize_header((TrackSource.SOURCE1, TrackSource.SOURCE2), header1)

        assert decode_u32(data[8:12]) == 2
        assert struct.unpack('>III', data[24:36]) == (1, 0, 0)

    def test_output_parses_back(self):
        header1, header2 = self._headers()
        decisions = (TrackSource.SOURCE2, TrackSource.SOURCE1, TrackSource.SOURCE2)

        data = serialize_header(decisions, header1, header2)
        parsed = parse_header(io.BytesIO(data))

        expected = destination_header(decisions, header1, header2)
        assert parsed.tracks == expected.tracks
        assert parsed.offsets == expected.offsets

    def test_short_decisions_rejected(self):
        header1, header2 = self._headers()
        with pytest.raises(ValueError):
            serialize_header((TrackSource.SOURCE1,), header1, header2)

    @pytest.mark.parametrize("buffer_size", [24, 48, 100, 1024])
    def test_chunks_fit_buffer(self, buffer_size):
        """Test chunked output equals the full header and respects capacity."""
        header = EADFHeader.from_records([TrackRecord(TrackType.RAW, i, i * 8)
                                          for i in range(MAX_TRACKS)])
        decisions = (TrackSource.SOURCE1,) * MAX_TRACKS

        chunks = list(iter_header_chunks(decisions, header, buffer_size=buffer_size))

        assert b''.join(chunks) == serialize_header(decisions, header)
        assert all(len(chunk) <= buffer_size for chunk in chunks)

    def test_large_header_is_flushed_in_several_chunks(self):
        """Test a 166 track header (2004 bytes) spans more than one 1024 byte buffer."""
        header = EADFHeader.from_records([EMPTY_RECORD] * MAX_TRACKS)
        decisions = (TrackSource.SOURCE1,) * MAX_TRACKS

        chunks = list(iter_header_chunks(decisions, header))

        assert sum(len(chunk) for chunk in chunks) == 2004
        assert len(chunks) >= 2

    def test_buffer_too_small(self):
        header = EADFHeader.from_records([EMPTY_RECORD])
        with pytest.raises(ValueError):
            list(iter_header_chunks((TrackSource.SOURCE1,), header, buffer_size=16))

    def test_from_records_enforces_ceiling(self):
        with pytest.raises(InvalidTrackCountError):
            EADFHeader.from_records([EMPTY_RECORD] * (MAX_TRACKS + 1))
