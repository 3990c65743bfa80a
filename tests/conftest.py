"""Shared test fixtures: fake audio backend and fake network collaborators."""

from __future__ import annotations

import pytest

from playback import PlaybackListener
from translator import TranslationError


class FakeHandle:
    def __init__(self, source):
        self.source = source
        self.duration = None
        self.current_time = 0.0
        self.playing = False
        self.released = False

    def play(self):
        self.playing = True

    def pause(self):
        self.playing = False

    def release(self):
        self.released = True


class FakeBackend:
    def __init__(self):
        self.loaded: list[tuple[FakeHandle, PlaybackListener]] = []

    def load(self, source, listener: PlaybackListener) -> FakeHandle:
        handle = FakeHandle(source)
        self.loaded.append((handle, listener))
        return handle

    @property
    def last(self) -> tuple[FakeHandle, PlaybackListener]:
        return self.loaded[-1]


class FakeTTS:
    def __init__(self, audio: bytes = b"ID3-fake-mp3", error: Exception | None = None):
        self.audio = audio
        self.error = error
        self.calls: list[str] = []

    async def synthesize(self, text, params) -> bytes:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.audio

    async def health_check(self) -> bool:
        return True

    async def close(self):
        pass


class FakeTranslator:
    """Uppercases text; raises for anything containing 'fail'."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    async def translate(self, text: str, target_lang: str) -> str:
        self.calls.append((text, target_lang))
        if "fail" in text:
            raise TranslationError("boom")
        return text.upper()

    async def close(self):
        pass


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def fake_tts() -> FakeTTS:
    return FakeTTS()


@pytest.fixture
def fake_translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def make_tts():
    """Factory for FakeTTS instances with custom audio or a forced error."""
    return FakeTTS
