# ABOUTME: FastAPI server for the shadow reader: segment timing, TTS generation, translation
# ABOUTME: Also exposes the key-value store used to persist notes, voices, and settings
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field

import config
import shadowing
from cache import AudioCache
from segmenter import Segment, parse_lyrics
from store import KeyValueStore
from sync_text import allocate_timestamps, generate_lrc
from translator import Translator, translate_segments
from tts_client import DEFAULT_VOICE_ID, GenerationError, TTSClient, VoiceParams

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("shadow-reader")

tts = TTSClient()
translator = Translator()
cache = AudioCache(max_entries=config.CACHE_MAX_ENTRIES)
store = KeyValueStore()

_MISSING = object()


class VoiceSettings(BaseModel):
    model: str = "speech-2.8-hd"
    voice_id: str = DEFAULT_VOICE_ID
    speed: float = Field(1.0, ge=0.5, le=2.0)
    vol: float = Field(3.0, gt=0, le=10.0)
    pitch: int = Field(0, ge=-12, le=12)
    emotion: str = "auto"
    mod_pitch: int = Field(0, ge=-100, le=100)
    intensity: int = Field(0, ge=-100, le=100)
    timbre: int = Field(0, ge=-100, le=100)
    sound_effect: str = "none"


class SegmentsRequest(BaseModel):
    text: str
    duration: float = Field(0.0, ge=0)


class ShadowingRequest(BaseModel):
    text: str
    voice: VoiceSettings = Field(default_factory=VoiceSettings)


class RetimeRequest(BaseModel):
    texts: list[str]
    duration: float = Field(ge=0)


class TimedSegment(BaseModel):
    text: str
    start_time: float = 0.0
    end_time: float = 0.0


class LrcRequest(BaseModel):
    segments: list[TimedSegment]
    title: str | None = None


class TranslateRequest(BaseModel):
    segments: list[str]
    target_lang: str = "zh"


def _segments_payload(segments: list[Segment]) -> list[dict]:
    return [asdict(seg) for seg in segments]


@asynccontextmanager
async def lifespan(app: FastAPI):
    await store.init_db()
    logger.info("Shadow reader started (db=%s)", store.db_path)
    yield
    await tts.close()
    await translator.close()


app = FastAPI(title="Shadow Reader API", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/health")
async def health():
    """Service health + TTS reachability."""
    try:
        tts_ok = await tts.health_check()
        tts_detail = None
    except Exception as e:
        tts_ok = False
        tts_detail = str(e)

    return {
        "status": "ok" if tts_ok else "degraded",
        "tts_server": {"reachable": tts_ok, "error": tts_detail},
        "cached_audio": len(cache),
    }


@app.post("/api/segments")
async def segment(req: SegmentsRequest):
    """Segment text; time the segments when a duration is supplied."""
    segments = allocate_timestamps(parse_lyrics(req.text), req.duration)
    return {"segments": _segments_payload(segments)}


@app.post("/api/shadowing")
async def create_shadowing(req: ShadowingRequest):
    """Generate (or reuse) speech for text and return its timed segments."""
    params = VoiceParams(**req.voice.model_dump())
    try:
        result = await shadowing.prepare(req.text, params, tts, cache)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except GenerationError as e:
        logger.warning("Generation failed: %s", e)
        raise HTTPException(502, f"Failed to generate speech: {e}")

    return {
        "key": result.key,
        "duration": result.duration,
        "segments": _segments_payload(result.segments),
    }


@app.get("/api/audio/{key}")
async def get_audio(key: str):
    audio = cache.get(key)
    if audio is None:
        raise HTTPException(404, f"Audio not found: {key}")
    return Response(content=audio, media_type="audio/mpeg")


@app.post("/api/retime")
async def retime(req: RetimeRequest):
    """Re-allocate edited segment texts over the full duration."""
    return {"segments": _segments_payload(shadowing.retime(req.texts, req.duration))}


@app.post("/api/lrc", response_class=PlainTextResponse)
async def lrc(req: LrcRequest):
    segments = [Segment(**s.model_dump()) for s in req.segments]
    return generate_lrc(segments, title=req.title)


@app.post("/api/translate")
async def translate(req: TranslateRequest):
    """Translate each segment; failed segments come back untranslated."""
    segments = [Segment(text=text) for text in req.segments]
    translations = await translate_segments(translator, segments, req.target_lang)
    return {"target_lang": req.target_lang, "translations": translations}


@app.get("/api/store/{key}")
async def get_value(key: str):
    value = await store.get(key, _MISSING)
    if value is _MISSING:
        raise HTTPException(404, f"Key not found: {key}")
    return value


@app.put("/api/store/{key}")
async def put_value(key: str, value: Any = Body(...)):
    await store.set(key, value)
    return {"key": key, "success": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
