# ABOUTME: Splits raw text into caption segments at sentence and clause boundaries
# ABOUTME: Falls back to fixed 40-char chunks when punctuation leaves lines over 80 chars
from __future__ import annotations

import re
from dataclasses import dataclass

SENTENCE_MAX_CHARS = 50   # Longer sentences are split on clause separators
LINE_MAX_CHARS = 80       # Any line above this triggers hard re-chunking
HARD_CHUNK_CHARS = 40

# Terminator (CJK full-width or ASCII) plus any trailing whitespace
SENTENCE_BREAK = re.compile(r"([。！？.!?])\s*")
# Clause separators: commas and semicolons, CJK and ASCII
CLAUSE_BREAK = re.compile(r"([，；,;])\s*")


@dataclass
class Segment:
    """One caption unit and its time interval in seconds."""
    text: str
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def _break_lines(text: str, pattern: re.Pattern[str]) -> list[str]:
    """Put a line break after every match, then split, trim and drop empties."""
    broken = pattern.sub(lambda m: m.group(1) + "\n", text)
    return [line.strip() for line in broken.split("\n") if line.strip()]


def _hard_chunk(line: str) -> list[str]:
    return [line[i:i + HARD_CHUNK_CHARS] for i in range(0, len(line), HARD_CHUNK_CHARS)]


def segment_text(text: str) -> list[str]:
    """Split text into ordered display lines."""
    sentences = _break_lines(text.strip(), SENTENCE_BREAK)

    lines: list[str] = []
    for sentence in sentences:
        if len(sentence) <= SENTENCE_MAX_CHARS:
            lines.append(sentence)
        else:
            lines.extend(_break_lines(sentence, CLAUSE_BREAK))

    # Safety net: punctuation alone did not bound the line length
    if not lines or any(len(line) > LINE_MAX_CHARS for line in lines):
        rechunked: list[str] = []
        for line in lines:
            if len(line) <= LINE_MAX_CHARS:
                rechunked.append(line)
            else:
                rechunked.extend(_hard_chunk(line))
        lines = rechunked

    return [line for line in lines if line]


def parse_lyrics(text: str) -> list[Segment]:
    """Segment text into untimed Segments (all times zero)."""
    return [Segment(text=line) for line in segment_text(text)]
