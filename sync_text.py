# ABOUTME: Assigns segment time intervals proportionally to character length
# ABOUTME: Also renders timed segments as LRC synchronized lyrics
from __future__ import annotations

import math

from segmenter import Segment


def allocate_timestamps(
    segments: list[Segment],
    total_duration: float,
    clamp_end: bool = True,
) -> list[Segment]:
    """Distribute total_duration across segments by character count.

    Mutates the segments in place and returns the same list. Every interval
    is recomputed from scratch. With clamp_end the last segment ends exactly
    at total_duration, absorbing accumulated rounding drift.
    """
    if not math.isfinite(total_duration) or total_duration <= 0 or not segments:
        return segments

    total_chars = sum(len(seg.text) for seg in segments)
    if total_chars == 0:
        return segments

    current_time = 0.0
    for seg in segments:
        seg_duration = (len(seg.text) / total_chars) * total_duration
        seg.start_time = current_time
        seg.end_time = current_time + seg_duration
        current_time += seg_duration

    if clamp_end:
        segments[-1].end_time = total_duration
    return segments


def segment_durations(segments: list[Segment]) -> list[float]:
    return [seg.end_time - seg.start_time for seg in segments]


def format_timestamp(secs: float) -> str:
    """Format seconds as [mm:ss.xx] for LRC."""
    minutes, centis = divmod(round(secs * 100), 6000)
    return f"[{minutes:02d}:{centis // 100:02d}.{centis % 100:02d}]"


def generate_lrc(segments: list[Segment], title: str | None = None) -> str:
    """Render timed segments as an LRC string, one line per segment."""
    lines: list[str] = []
    if title:
        lines.append(f"{format_timestamp(0.0)} {title}")
    for seg in segments:
        lines.append(f"{format_timestamp(seg.start_time)} {seg.text}")
    return "\n".join(lines) + "\n"
