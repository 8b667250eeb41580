"""Tests for video ID extraction and text helpers."""

import pytest

from yt_transcript_extractor.utils import (
    extract_video_id,
    format_timestamp,
    is_valid_youtube_url,
    make_segments,
    split_words,
    timestamp_name,
)


class TestExtractVideoId:
    def test_standard_url(self):
        assert extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_short_url(self):
        assert extract_video_id("https://youtu.be/dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_embed_url(self):
        assert extract_video_id("https://www.youtube.com/embed/dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_shorts_url(self):
        assert extract_video_id("https://www.youtube.com/shorts/dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_raw_id(self):
        assert extract_video_id("dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_url_with_params(self):
        assert extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=30") == "dQw4w9WgXcQ"

    def test_v_not_first_param(self):
        assert extract_video_id("https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    @pytest.mark.parametrize("video_id", ["dQw4w9WgXcQ", "a-b_c-d_e-F", "00000000000"])
    def test_all_forms_agree(self, video_id):
        expected = extract_video_id(f"https://www.youtube.com/watch?v={video_id}")
        assert expected == video_id
        assert extract_video_id(f"https://youtu.be/{video_id}") == expected
        assert extract_video_id(f"https://www.youtube.com/embed/{video_id}") == expected

    def test_invalid_url(self):
        assert extract_video_id("https://google.com") is None

    def test_invalid_short_id(self):
        assert extract_video_id("abc") is None

    def test_empty_string(self):
        assert extract_video_id("") is None

    def test_non_string(self):
        with pytest.raises(TypeError):
            extract_video_id(None)


class TestIsValidYoutubeUrl:
    def test_watch(self):
        assert is_valid_youtube_url("https://www.youtube.com/watch?v=dQw4w9WgXcQ")

    def test_short(self):
        assert is_valid_youtube_url("youtu.be/dQw4w9WgXcQ")

    def test_other_site(self):
        assert not is_valid_youtube_url("https://vimeo.com/12345")


class TestSplitWords:
    def test_whitespace(self):
        assert split_words("Hello  big world") == ["Hello", "big", "world"]

    def test_japanese_delimiters(self):
        assert split_words("はい、そうです。本当！何？") == ["はい", "そうです", "本当", "何"]

    def test_empty(self):
        assert split_words("   ") == []


class TestMakeSegments:
    def test_ids_contiguous(self):
        segments = make_segments([("a", 0, 1), ("b", 1, 2), ("c", 5, 6)])
        assert [s.id for s in segments] == [1, 2, 3]

    def test_end_clamped_to_start(self):
        (segment,) = make_segments([("a", 3.0, 1.0)])
        assert segment.end_time == 3.0

    def test_source_order_kept(self):
        segments = make_segments([("late", 9.0, 10.0), ("early", 1.0, 2.0)])
        assert [s.text for s in segments] == ["late", "early"]


def test_timestamp_names_differ():
    assert timestamp_name("subs") != timestamp_name("subs")
    assert timestamp_name("audio").startswith("audio_")


class TestFormatTimestamp:
    def test_seconds_only(self):
        assert format_timestamp(45) == "0:45"

    def test_minutes_and_seconds(self):
        assert format_timestamp(125) == "2:05"

    def test_hours(self):
        assert format_timestamp(3661) == "1:01:01"

    def test_zero(self):
        assert format_timestamp(0) == "0:00"
