# ABOUTME: Maps audio playback position to the active caption segment
# ABOUTME: Owns one audio handle per session; stale callbacks from replaced sessions are dropped
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol

import editing
from segmenter import Segment, parse_lyrics
from sync_text import allocate_timestamps

logger = logging.getLogger("shadow-reader.playback")


class PlaybackState(str, Enum):
    IDLE = "idle"          # no audio attached
    LOADING = "loading"    # waiting for duration metadata
    PLAYING = "playing"
    PAUSED = "paused"


def active_index(segments: list[Segment], current_time: float) -> int | None:
    """Index of the segment whose [start, end) interval holds current_time.

    The end of the final segment is closed: at or past it the last index is
    returned so there is always an active segment once playback finishes.
    Times before the first segment map to 0. None only for an empty list.
    """
    if not segments:
        return None
    last = len(segments) - 1
    if current_time >= segments[last].end_time:
        return last
    for i, seg in enumerate(segments):
        if seg.start_time <= current_time < seg.end_time:
            return i
    return 0


@dataclass
class PlaybackListener:
    """Callbacks an audio backend invokes after load() has returned."""
    on_duration_known: Callable[[float], None]
    on_time_advance: Callable[[float], None]
    on_ended: Callable[[], None]


class AudioHandle(Protocol):
    duration: float | None
    current_time: float

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def release(self) -> None: ...


class AudioBackend(Protocol):
    def load(self, source: Any, listener: PlaybackListener) -> AudioHandle: ...


class PlaybackSession:
    """One text, one audio handle, one segment list."""

    def __init__(self, text: str):
        self.segments: list[Segment] = parse_lyrics(text)
        self.handle: AudioHandle | None = None
        self.state = PlaybackState.IDLE
        self.duration = 0.0
        self.current_time = 0.0
        self.active_index = 0

    @property
    def is_ready(self) -> bool:
        return self.state in (PlaybackState.PLAYING, PlaybackState.PAUSED)

    def attach(self, handle: AudioHandle):
        self.handle = handle
        self.state = PlaybackState.LOADING

    def destroy(self):
        """Stop and release the audio, discard segments."""
        if self.handle is not None:
            self.handle.pause()
            self.handle.release()
        self.handle = None
        self.segments = []
        self.state = PlaybackState.IDLE
        self.active_index = 0
        self.current_time = 0.0

    # --- Audio events ---

    def on_duration_known(self, duration: float):
        """First and only timing pass for this source; starts playback at 0."""
        if self.state is not PlaybackState.LOADING:
            logger.debug("Ignoring duration %s in state %s", duration, self.state.value)
            return
        if duration is None or not math.isfinite(duration) or duration <= 0:
            logger.debug("Ignoring unusable duration %s", duration)
            return

        self.duration = duration
        allocate_timestamps(self.segments, duration)
        self.active_index = 0
        self.current_time = 0.0
        self.handle.current_time = 0.0
        self.handle.play()
        self.state = PlaybackState.PLAYING
        logger.info("Timed %d segments over %.2fs", len(self.segments), duration)

    def on_time_advance(self, current_time: float):
        if not self.is_ready:
            return
        self.current_time = current_time
        index = active_index(self.segments, current_time)
        if index is not None:
            self.active_index = index

    def on_ended(self):
        """Natural end of playback: rewind to the start, paused."""
        if not self.is_ready:
            return
        self.state = PlaybackState.PAUSED
        self.active_index = 0
        self.current_time = 0.0
        self.handle.current_time = 0.0

    # --- Transport ---

    def toggle_play(self) -> bool:
        """Flip between playing and paused. Returns True when now playing."""
        if self.state is PlaybackState.PLAYING:
            self.handle.pause()
            self.state = PlaybackState.PAUSED
        elif self.state is PlaybackState.PAUSED:
            self.handle.play()
            self.state = PlaybackState.PLAYING
        return self.state is PlaybackState.PLAYING

    def seek_to_segment(self, index: int) -> bool:
        if not self.is_ready or not 0 <= index < len(self.segments):
            logger.debug("seek_to_segment ignored: index %d of %d (%s)",
                         index, len(self.segments), self.state.value)
            return False

        self.handle.pause()
        # Highlight eagerly; the next time tick would otherwise lag behind
        self.active_index = index
        self.current_time = self.segments[index].start_time
        self.handle.current_time = self.current_time
        self.handle.play()
        self.state = PlaybackState.PLAYING
        return True

    def next(self) -> bool:
        if self.active_index >= len(self.segments) - 1:
            return False
        return self.seek_to_segment(self.active_index + 1)

    def previous(self) -> bool:
        if self.active_index <= 0:
            return False
        return self.seek_to_segment(self.active_index - 1)

    def restart(self) -> bool:
        if not self.is_ready:
            return False
        self.active_index = 0
        self.current_time = 0.0
        self.handle.current_time = 0.0
        self.handle.play()
        self.state = PlaybackState.PLAYING
        return True

    # --- Editing ---

    def reallocate(self) -> list[Segment]:
        """Recompute every interval against the known duration."""
        if self.duration > 0:
            allocate_timestamps(self.segments, self.duration)
        self._clamp_active()
        return self.segments

    def merge_with_previous(self, index: int) -> int | None:
        merged = editing.merge_with_previous(self.segments, index)
        if merged is not None:
            self.reallocate()
        return merged

    def merge_with_next(self, index: int) -> int | None:
        merged = editing.merge_with_next(self.segments, index)
        if merged is not None:
            self.reallocate()
        return merged

    def split_at(self, index: int, offset: int) -> int | None:
        second = editing.split_at(self.segments, index, offset)
        if second is not None:
            self.reallocate()
        return second

    def insert_after(self, index: int) -> int | None:
        """Placeholder for the user to type into; timings stay halved until reallocate()."""
        inserted = editing.insert_after(self.segments, index)
        self._clamp_active()
        return inserted

    def edit_text(self, index: int, text: str) -> bool:
        return editing.edit_text(self.segments, index, text)

    def _clamp_active(self):
        self.active_index = max(0, min(self.active_index, len(self.segments) - 1))


class Player:
    """Owns at most one PlaybackSession at a time.

    Loading a new source destroys the previous session. Backend callbacks
    are tagged with the generation they were wired for, and anything
    arriving for an older generation is discarded.
    """

    def __init__(self, backend: AudioBackend):
        self._backend = backend
        self._generation = 0
        self.session: PlaybackSession | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def load(self, text: str, source: Any) -> PlaybackSession:
        self.close()
        generation = self._generation
        session = PlaybackSession(text)
        listener = PlaybackListener(
            on_duration_known=self._guard(generation, session.on_duration_known),
            on_time_advance=self._guard(generation, session.on_time_advance),
            on_ended=self._guard(generation, session.on_ended),
        )
        session.attach(self._backend.load(source, listener))
        self.session = session
        logger.info("Loaded session %d with %d segments", generation, len(session.segments))
        return session

    def close(self):
        self._generation += 1
        if self.session is not None:
            self.session.destroy()
            self.session = None

    def _guard(self, generation: int, callback: Callable[..., None]) -> Callable[..., None]:
        def guarded(*args):
            if generation != self._generation:
                logger.debug("Dropping stale %s for generation %d (current %d)",
                             callback.__name__, generation, self._generation)
                return
            callback(*args)
        return guarded
