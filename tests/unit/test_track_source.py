"""
Unit tests for track source resolution and track spec parsing.
"""

import pytest

from rawadf.core.track_source import (
    SelectionPolicy,
    explicit_override,
    explicit_subset,
    parse_track_spec,
    parse_track_specs,
    prefer_dos,
    prefer_nonempty,
    resolve_track_sources,
)
from rawadf.imaging import (
    EMPTY_RECORD,
    EADFHeader,
    TrackRecord,
    TrackSource,
    TrackSpecError,
    TrackType,
)

S1 = TrackSource.SOURCE1
S2 = TrackSource.SOURCE2
NONE = TrackSource.NONE


def raw(size=100):
    return TrackRecord(TrackType.RAW, size, size * 8)


def dos(size=100):
    return TrackRecord(TrackType.DOS, size, size * 8)


def header(*records):
    return EADFHeader.from_records(records)


class TestPreferNonempty:
    """Test the merge policy."""

    def test_length_is_union(self):
        assert len(prefer_nonempty(header(raw()), header(raw(), raw(), raw()))) == 3
        assert len(prefer_nonempty(header(raw(), raw(), raw()), header(raw()))) == 3

    def test_source1_wins_when_nonempty(self):
        assert prefer_nonempty(header(raw(10)), header(raw(500))) == (S1,)

    def test_empty_source1_uses_source2(self):
        assert prefer_nonempty(header(EMPTY_RECORD), header(raw())) == (S2,)

    def test_both_empty_uses_source1(self):
        assert prefer_nonempty(header(EMPTY_RECORD), header(EMPTY_RECORD)) == (S1,)

    def test_tail_tracks(self):
        """Test tracks past either end come from the longer image."""
        decisions = prefer_nonempty(header(raw(), raw()), header(raw(), raw(), raw(), raw()))
        assert decisions == (S1, S1, S2, S2)

        decisions = prefer_nonempty(header(raw(), raw(), raw()), header(raw()))
        assert decisions == (S1, S1, S1)

    def test_never_chooses_empty_over_nonempty(self):
        """Test no selected track is empty while the other side has data."""
        h1 = header(EMPTY_RECORD, raw(), EMPTY_RECORD, raw(), EMPTY_RECORD)
        h2 = header(raw(), EMPTY_RECORD, EMPTY_RECORD, raw(), raw(), raw())

        for i, decision in enumerate(prefer_nonempty(h1, h2)):
            size1 = h1.track(i).size_bytes if h1.has_track(i) else 0
            size2 = h2.track(i).size_bytes if h2.has_track(i) else 0
            chosen = size1 if decision is S1 else size2
            assert not (chosen == 0 and (size1 > 0 or size2 > 0))

    def test_empty_sources(self):
        assert prefer_nonempty(header(), header()) == ()


class TestPreferDos:
    """Test the dosmerge policy."""

    @pytest.mark.parametrize("type1,type2,expected", [
        (dos(), dos(), S1),
        (dos(), raw(), S1),
        (raw(), raw(), S1),
        (raw(), dos(), S2),
    ])
    def test_type_table(self, type1, type2, expected):
        assert prefer_dos(header(type1), header(type2)) == (expected,)

    def test_ignores_emptiness(self):
        """Test an empty RAW track still loses only to DOS."""
        assert prefer_dos(header(EMPTY_RECORD), header(raw())) == (S1,)

    def test_tail_tracks(self):
        assert prefer_dos(header(raw()), header(raw(), raw())) == (S1, S2)
        assert prefer_dos(header(raw(), raw()), header(dos())) == (S2, S1)


class TestExplicitPolicies:
    """Test explicit_override() and explicit_subset()."""

    def test_override(self):
        h1 = header(raw(), raw(), raw(), raw())
        h2 = header(raw(), raw(), raw())
        assert explicit_override(h1, h2, {1, 3}) == (S1, S2, S1, S2)

    def test_override_covers_longer_source(self):
        decisions = explicit_override(header(raw()), header(raw(), raw(), raw()), {2})
        assert decisions == (S1, S1, S2)

    def test_override_ignores_out_of_range(self):
        assert explicit_override(header(raw()), header(raw()), {100}) == (S1,)

    def test_subset(self):
        assert explicit_subset(header(raw(), raw(), raw(), raw()), {0, 2}) == (S1, NONE, S1, NONE)

    def test_subset_nothing_included(self):
        assert explicit_subset(header(raw(), raw()), frozenset()) == (NONE, NONE)


class TestResolveTrackSources:
    """Test resolve_track_sources()."""

    def test_dispatch(self):
        h1 = header(EMPTY_RECORD, raw())
        h2 = header(dos(), dos())

        assert resolve_track_sources(SelectionPolicy.MERGE, h1, h2) == (S2, S1)
        assert resolve_track_sources(SelectionPolicy.DOSMERGE, h1, h2) == (S2, S2)
        assert resolve_track_sources(SelectionPolicy.REPLACE, h1, h2, {1}) == (S1, S2)
        assert resolve_track_sources(SelectionPolicy.SPLIT, h1, tracks={1}) == (NONE, S1)

    def test_two_source_policy_needs_second_header(self):
        with pytest.raises(ValueError):
            resolve_track_sources(SelectionPolicy.MERGE, header(raw()))


class TestParseTrackSpec:
    """Test parse_track_spec() / parse_track_specs()."""

    def test_single_track(self):
        assert set(parse_track_spec("35")) == {35}

    def test_range(self):
        assert set(parse_track_spec("57-59")) == {57, 58, 59}

    def test_degenerate_range(self):
        assert set(parse_track_spec("7-7")) == {7}

    def test_bounds(self):
        assert set(parse_track_spec("0")) == {0}
        assert set(parse_track_spec("165")) == {165}
        assert len(parse_track_spec("0-165")) == 166

    def test_leading_zeros(self):
        assert set(parse_track_spec("007")) == {7}

    @pytest.mark.parametrize("spec", [
        "166", "200", "0-166", "160-170",
    ])
    def test_out_of_range(self, spec):
        with pytest.raises(TrackSpecError) as exc_info:
            parse_track_spec(spec)
        assert exc_info.value.spec == spec

    def test_descending_range(self):
        with pytest.raises(TrackSpecError):
            parse_track_spec("50-40")

    @pytest.mark.parametrize("spec", [
        "", "-", "abc", "5-", "-5", "1-2-3", " 5", "5 ", "5\n", "+5", "0x10", "1,2", "٣",
    ])
    def test_malformed(self, spec):
        with pytest.raises(TrackSpecError):
            parse_track_spec(spec)

    def test_union(self):
        assert parse_track_specs(["0", "2-4", "3-5", "80"]) == frozenset({0, 2, 3, 4, 5, 80})

    def test_union_empty(self):
        assert parse_track_specs([]) == frozenset()

    def test_union_stops_at_first_bad_spec(self):
        with pytest.raises(TrackSpecError) as exc_info:
            parse_track_specs(["1", "x", "200"])
        assert exc_info.value.spec == "x"
