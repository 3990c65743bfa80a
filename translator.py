# ABOUTME: Translates caption segments through the GLM chat-completions API
# ABOUTME: Per-segment failures fall back to the original text instead of aborting the batch
from __future__ import annotations

import logging

import httpx

import config
from segmenter import Segment

logger = logging.getLogger("shadow-reader.translate")

REQUEST_TIMEOUT = 60.0
MAX_TOKENS = 1024

LANGUAGE_NAMES = {
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
}
DEFAULT_LANGUAGE = "Chinese"


class TranslationError(Exception):
    """The translation service could not produce a result."""


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, DEFAULT_LANGUAGE)


def build_prompt(text: str, target_lang: str) -> str:
    return (f"Translate the following text to {language_name(target_lang)}. "
            f"Return ONLY the translation, nothing else.\n\n{text}")


class Translator:
    """Async client for GLM machine translation."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = config.GLM_BASE_URL,
        model: str = config.GLM_MODEL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            try:
                api_key = self.api_key or config.load_api_key("GLM_API_KEY")
            except ValueError as e:
                raise TranslationError(str(e)) from e
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

    async def translate(self, text: str, target_lang: str) -> str:
        """Translate text into the target language code (zh, ja, ko)."""
        client = await self._get_client()
        try:
            resp = await client.post(
                "/chat/completions",
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": build_prompt(text, target_lang)}],
                    "max_tokens": MAX_TOKENS,
                },
            )
        except httpx.HTTPError as e:
            raise TranslationError(f"Failed to reach translation service: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.is_error:
            error = data.get("error")
            message = error.get("message") if isinstance(error, dict) else error
            raise TranslationError(message or f"Translation failed: {resp.status_code}")

        choices = data.get("choices") or []
        content = (choices[0].get("message") or {}).get("content") if choices else None
        return content.strip() if content and content.strip() else text


async def translate_segments(
    translator: Translator,
    segments: list[Segment],
    target_lang: str,
) -> list[str]:
    """Translate each segment in order, keeping the original text on failure."""
    translations: list[str] = []
    for i, seg in enumerate(segments):
        try:
            translations.append(await translator.translate(seg.text, target_lang))
        except TranslationError as e:
            logger.warning("Segment %d translation failed, keeping original: %s", i, e)
            translations.append(seg.text)
    return translations
