"""Unit tests for proportional timestamp allocation and LRC rendering."""

import pytest

from segmenter import Segment, parse_lyrics
from sync_text import allocate_timestamps, format_timestamp, generate_lrc, segment_durations


def _segments(*texts: str) -> list[Segment]:
    return [Segment(text=t) for t in texts]


class TestAllocate:
    def test_two_sentences_over_ten_seconds(self):
        segments = allocate_timestamps(parse_lyrics("Hello world. This is a test, with a clause."), 10.0)
        assert [s.text for s in segments] == ["Hello world.", "This is a test, with a clause."]
        assert segments[0].start_time == 0.0
        assert segments[0].end_time == pytest.approx(12 / 42 * 10.0)
        assert segments[1].start_time == segments[0].end_time
        assert segments[1].end_time == 10.0
        assert sum(segment_durations(segments)) == pytest.approx(10.0)

    def test_fixed_width_chunks_share_duration_evenly(self):
        segments = allocate_timestamps(parse_lyrics("a" * 200), 20.0)
        assert len(segments) == 5
        for duration in segment_durations(segments):
            assert duration == pytest.approx(4.0)

    def test_coverage_is_contiguous(self):
        segments = allocate_timestamps(_segments("one", "three", "fifteen", "x", "twenty-two"), 7.3)
        assert segments[0].start_time == 0.0
        for left, right in zip(segments, segments[1:]):
            assert left.end_time == right.start_time
        assert segments[-1].end_time == 7.3

    def test_durations_proportional_to_length(self):
        segments = allocate_timestamps(_segments("ab", "abcdef", "abcd"), 3.0)
        d = segment_durations(segments)
        assert d[1] / d[0] == pytest.approx(6 / 2)
        assert d[2] / d[0] == pytest.approx(4 / 2)

    def test_mutates_in_place(self):
        segments = _segments("abc", "def")
        result = allocate_timestamps(segments, 2.0)
        assert result is segments
        assert segments[1].start_time == pytest.approx(1.0)

    def test_recomputes_from_scratch(self):
        segments = [Segment("abc", 99.0, 100.0), Segment("def", -5.0, 3.0)]
        allocate_timestamps(segments, 2.0)
        assert segments == [Segment("abc", 0.0, 1.0), Segment("def", 1.0, 2.0)]

    def test_empty_segment_collapses(self):
        segments = allocate_timestamps(_segments("ab", "", "ab"), 4.0)
        assert segments[1].start_time == segments[1].end_time == pytest.approx(2.0)

    def test_unclamped_end_tolerates_drift(self):
        segments = allocate_timestamps(_segments(*["abc"] * 7), 1.0, clamp_end=False)
        assert segments[-1].end_time == pytest.approx(1.0)

    def test_clamped_end_is_exact(self):
        segments = allocate_timestamps(_segments(*["abc"] * 7), 1.0)
        assert segments[-1].end_time == 1.0


class TestAllocateEarlyExit:
    def test_empty_list(self):
        assert allocate_timestamps(parse_lyrics(""), 5.0) == []

    def test_zero_duration_leaves_zero_times(self):
        segments = allocate_timestamps(_segments("One.", "Two.", "Three."), 0.0)
        assert all(s.start_time == 0.0 and s.end_time == 0.0 for s in segments)

    def test_negative_duration(self):
        segments = allocate_timestamps(_segments("One."), -3.0)
        assert segments == [Segment("One.")]

    def test_all_empty_texts(self):
        segments = allocate_timestamps(_segments("", ""), 5.0)
        assert segments == [Segment(""), Segment("")]

    @pytest.mark.parametrize("duration", [float("nan"), float("inf")])
    def test_non_finite_duration(self, duration):
        segments = allocate_timestamps(_segments("One.", "Two."), duration)
        assert segments == [Segment("One."), Segment("Two.")]


class TestLrc:
    def test_format_timestamp(self):
        assert format_timestamp(0.0) == "[00:00.00]"
        assert format_timestamp(65.5) == "[01:05.50]"
        assert format_timestamp(600.25) == "[10:00.25]"

    def test_format_timestamp_carries_rounded_minute(self):
        assert format_timestamp(59.999) == "[01:00.00]"
        assert format_timestamp(119.996) == "[02:00.00]"
        assert format_timestamp(59.994) == "[00:59.99]"

    def test_generate_lrc(self):
        segments = allocate_timestamps(_segments("abcd", "efgh"), 8.0)
        assert generate_lrc(segments) == "[00:00.00] abcd\n[00:04.00] efgh\n"

    def test_generate_lrc_with_title(self):
        lrc = generate_lrc([Segment("line", 1.5, 3.0)], title="Lesson 1")
        assert lrc.splitlines() == ["[00:00.00] Lesson 1", "[00:01.50] line"]
