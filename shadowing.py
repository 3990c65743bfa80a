# ABOUTME: Orchestrates a shadowing session: cache lookup, synthesis, duration, segment timing
# ABOUTME: Segmentation is pure and recomputed per call, so retries after a TTS failure are safe
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from cache import AudioCache, cache_key
from segmenter import Segment, parse_lyrics
from sync_text import allocate_timestamps
from tts_client import GenerationError, TTSClient, VoiceParams

logger = logging.getLogger("shadow-reader.shadowing")


@dataclass
class ShadowingResult:
    key: str
    audio: bytes
    duration: float
    segments: list[Segment] = field(default_factory=list)


def get_audio_duration_secs(audio: bytes, fmt: str = "mp3") -> float:
    """Duration of encoded audio in seconds."""
    seg = AudioSegment.from_file(io.BytesIO(audio), format=fmt)
    return seg.duration_seconds


def retime(texts: list[str], duration: float) -> list[Segment]:
    """Rebuild segments from edited texts and redistribute the whole duration."""
    segments = [Segment(text=text) for text in texts]
    return allocate_timestamps(segments, duration)


async def prepare(
    text: str,
    params: VoiceParams,
    tts: TTSClient,
    cache: AudioCache,
) -> ShadowingResult:
    """Synthesize (or reuse) audio for text and time its segments against it.

    Raises ValueError for blank text. GenerationError propagates from the
    TTS client untouched, and is also raised when the audio cannot be
    decoded. Only audio that decoded is cached.
    """
    if not text.strip():
        raise ValueError("Text is empty")

    key = cache_key(text, params)
    audio = cache.get(key)
    cached = audio is not None
    if cached:
        logger.debug("Audio %s from cache", key)
    else:
        logger.info("Generating audio %s (%d chars, voice=%s)", key, len(text), params.voice_id)
        audio = await tts.synthesize(text, params)

    try:
        duration = get_audio_duration_secs(audio)
    except (CouldntDecodeError, OSError) as e:
        logger.exception("Audio %s could not be decoded", key)
        raise GenerationError(f"Generated audio could not be decoded: {e}") from e

    if not cached:
        cache.put(key, audio)
    segments = allocate_timestamps(parse_lyrics(text), duration)
    logger.info("Audio %s: %.2fs, %d segments", key, duration, len(segments))
    return ShadowingResult(key=key, audio=audio, duration=duration, segments=segments)
