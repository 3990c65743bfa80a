# ABOUTME: Async HTTP client for the MiniMax t2a_v2 text-to-speech API
# ABOUTME: Decodes hex-encoded MP3 audio and retries on 5xx/timeouts with backoff
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

import config

logger = logging.getLogger("shadow-reader.tts")

REQUEST_TIMEOUT = 120.0
MAX_RETRIES = 3
BACKOFF_SECS = [2, 5, 10]

DEFAULT_VOICE_ID = "moss_audio_fa3d32d5-0772-11f1-9674-4676ef969ef9"

AUDIO_SETTING = {
    "sample_rate": 32000,
    "bitrate": 128000,
    "format": "mp3",
    "channel": 1,
}


class GenerationError(Exception):
    """Speech synthesis failed; the message is shown to the user."""


@dataclass
class VoiceParams:
    model: str = "speech-2.8-hd"
    voice_id: str = DEFAULT_VOICE_ID
    speed: float = 1.0
    vol: float = 3.0
    pitch: int = 0            # [-12, 12]
    emotion: str = "auto"
    mod_pitch: int = 0        # [-100, 100]
    intensity: int = 0        # [-100, 100]
    timbre: int = 0           # [-100, 100]
    sound_effect: str = "none"


def build_payload(text: str, params: VoiceParams) -> dict:
    voice_modify: dict = {
        "pitch": params.mod_pitch,
        "intensity": params.intensity,
        "timbre": params.timbre,
    }
    if params.sound_effect != "none":
        voice_modify["sound_effects"] = params.sound_effect
    return {
        "model": params.model,
        "text": text,
        "stream": False,
        "voice_setting": {
            "voice_id": params.voice_id,
            "speed": params.speed,
            "vol": params.vol,
            "pitch": params.pitch,
            "emotion": params.emotion,
        },
        "voice_modify": voice_modify,
        "audio_setting": dict(AUDIO_SETTING),
    }


class TTSClient:
    """Async client for MiniMax speech synthesis."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = config.MINIMAX_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            try:
                api_key = self.api_key or config.load_api_key("MINIMAX_API_KEY")
            except ValueError as e:
                raise GenerationError(str(e)) from e
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request_with_retry(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Make HTTP request with backoff retry on 5xx/timeout."""
        last_exc: Exception | None = None
        for attempt in range(MAX_RETRIES):
            try:
                client = await self._get_client()
                resp = await client.request(method, path, **kwargs)
                if resp.status_code < 500:
                    return resp
                last_exc = httpx.HTTPStatusError(
                    f"Server error {resp.status_code}",
                    request=resp.request,
                    response=resp,
                )
            except httpx.TimeoutException as e:
                last_exc = e

            if attempt < MAX_RETRIES - 1:
                wait = BACKOFF_SECS[attempt]
                logger.warning("TTS request failed (attempt %d/%d), retrying in %ds: %s",
                               attempt + 1, MAX_RETRIES, wait, last_exc)
                await asyncio.sleep(wait)

        raise GenerationError(f"TTS service unavailable: {last_exc}")

    async def synthesize(self, text: str, params: VoiceParams) -> bytes:
        """Generate speech for text. Returns MP3 bytes."""
        try:
            resp = await self._request_with_retry("POST", "/v1/t2a_v2", json=build_payload(text, params))
        except httpx.TransportError as e:
            raise GenerationError(f"Failed to reach TTS service: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code >= 400:
            raise GenerationError(data.get("error") or f"API request failed: {resp.status_code}")

        base_resp = data.get("base_resp") or {}
        if base_resp.get("status_code") != 0:
            raise GenerationError(base_resp.get("status_msg") or "Generation failed")

        audio_hex = (data.get("data") or {}).get("audio")
        if not audio_hex:
            raise GenerationError("No audio data returned from API")

        try:
            audio = bytes.fromhex(audio_hex)
        except ValueError as e:
            raise GenerationError("Malformed audio data returned from API") from e

        logger.info("Synthesized %d chars -> %d bytes (voice=%s)", len(text), len(audio), params.voice_id)
        return audio

    async def health_check(self) -> bool:
        """True when the TTS host answers at all."""
        client = await self._get_client()
        try:
            await client.get("/", timeout=5.0)
        except httpx.HTTPError:
            return False
        return True
