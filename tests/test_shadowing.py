"""Tests for the shadowing orchestrator: cache reuse, duration, timing, retries."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from pydub.exceptions import CouldntDecodeError

import shadowing
from cache import AudioCache, cache_key
from shadowing import get_audio_duration_secs, prepare, retime
from tts_client import GenerationError, VoiceParams

TEXT = "Hello world. This is a test, with a clause. Goodbye now."


@pytest.fixture
def measured(monkeypatch):
    """Replace pydub measurement with a fixed duration; records the audio it saw."""
    seen: list[bytes] = []

    def _fixed(duration: float):
        def fake(audio: bytes, fmt: str = "mp3") -> float:
            seen.append(audio)
            return duration
        monkeypatch.setattr(shadowing, "get_audio_duration_secs", fake)
        return seen
    return _fixed


@pytest.mark.asyncio
async def test_prepare_times_segments(measured, fake_tts):
    seen = measured(54.0)
    result = await prepare(TEXT, VoiceParams(), fake_tts, AudioCache())

    assert result.key == cache_key(TEXT, VoiceParams())
    assert result.audio == fake_tts.audio
    assert result.duration == 54.0
    assert [s.text for s in result.segments] == [
        "Hello world.", "This is a test, with a clause.", "Goodbye now.",
    ]
    assert result.segments[1].start_time == pytest.approx(12.0)
    assert result.segments[-1].end_time == 54.0
    assert seen == [fake_tts.audio]


@pytest.mark.asyncio
async def test_prepare_reuses_cached_audio(measured, fake_tts):
    measured(3.0)
    cache = AudioCache()
    first = await prepare(TEXT, VoiceParams(), fake_tts, cache)
    second = await prepare(TEXT, VoiceParams(), fake_tts, cache)
    assert fake_tts.calls == [TEXT]
    assert second.key == first.key

    await prepare(TEXT, VoiceParams(speed=1.5), fake_tts, cache)
    assert len(fake_tts.calls) == 2


@pytest.mark.asyncio
async def test_prepare_rejects_blank_text(fake_tts):
    with pytest.raises(ValueError):
        await prepare("   ", VoiceParams(), fake_tts, AudioCache())
    assert fake_tts.calls == []


@pytest.mark.asyncio
async def test_generation_failure_then_retry(measured, make_tts):
    measured(54.0)
    cache = AudioCache()
    failing = make_tts(error=GenerationError("quota exceeded"))
    with pytest.raises(GenerationError, match="quota exceeded"):
        await prepare(TEXT, VoiceParams(), failing, cache)
    assert len(cache) == 0

    result = await prepare(TEXT, VoiceParams(), make_tts(), cache)
    assert len(result.segments) == 3


@pytest.mark.asyncio
async def test_undecodable_audio_is_not_cached(monkeypatch, make_tts):
    tts = make_tts(audio=b"not really mp3")
    cache = AudioCache()

    def undecodable(audio: bytes, fmt: str = "mp3") -> float:
        raise CouldntDecodeError("Decoding failed")
    monkeypatch.setattr(shadowing, "get_audio_duration_secs", undecodable)

    for _ in range(2):
        with pytest.raises(GenerationError, match="could not be decoded"):
            await prepare(TEXT, VoiceParams(), tts, cache)
    assert len(tts.calls) == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_missing_decoder_surfaces_as_generation_error(monkeypatch, fake_tts):
    def no_ffmpeg(audio: bytes, fmt: str = "mp3") -> float:
        raise FileNotFoundError("ffmpeg")
    monkeypatch.setattr(shadowing, "get_audio_duration_secs", no_ffmpeg)

    with pytest.raises(GenerationError):
        await prepare(TEXT, VoiceParams(), fake_tts, AudioCache())


def test_retime_redistributes_edited_texts():
    segments = retime(["Hello world.", "", "New line here"], 10.0)
    assert segments[0].start_time == 0.0
    assert segments[1].duration == 0.0
    assert segments[-1].end_time == 10.0


def test_retime_zero_duration():
    segments = retime(["a", "b"], 0.0)
    assert all(s.end_time == 0.0 for s in segments)


@patch("shadowing.AudioSegment")
def test_duration_from_pydub(mock_audio_segment):
    mock_audio_segment.from_file.return_value.duration_seconds = 7.25
    assert get_audio_duration_secs(b"ID3") == 7.25
    _, kwargs = mock_audio_segment.from_file.call_args
    assert kwargs["format"] == "mp3"
