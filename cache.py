# ABOUTME: In-memory LRU cache for synthesized audio, keyed by request fingerprint
# ABOUTME: Injected into the synthesis path so identical requests skip the TTS call
from __future__ import annotations

import hashlib
import json
from collections import OrderedDict
from dataclasses import asdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tts_client import VoiceParams


def cache_key(text: str, params: VoiceParams) -> str:
    """MD5 of the text plus every voice parameter."""
    content = json.dumps({"text": text, **asdict(params)}, sort_keys=True, ensure_ascii=False)
    return hashlib.md5(content.encode()).hexdigest()


class AudioCache:
    """Bounded LRU map of key -> audio bytes. max_entries=None means unbounded."""

    def __init__(self, max_entries: int | None = 64):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, bytes] = OrderedDict()

    def get(self, key: str) -> bytes | None:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def put(self, key: str, value: bytes):
        self._entries[key] = value
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
