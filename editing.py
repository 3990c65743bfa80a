# ABOUTME: In-place edit operations on a segment list: merge, insert, split, retext
# ABOUTME: Edits leave timings approximate; callers re-run allocation for exact intervals
from __future__ import annotations

import logging
import re

from segmenter import Segment

logger = logging.getLogger("shadow-reader.editing")

LATIN_LETTER = re.compile(r"[A-Za-zÀ-ɏ]")


def _in_range(segments: list[Segment], index: int) -> bool:
    return 0 <= index < len(segments)


def join_texts(left: str, right: str) -> str:
    """Join two segment texts, undoing a hard chunk split when one is detected.

    A boundary with a Latin letter on both sides is treated as a word the
    segmenter chopped mid-way, so the halves are glued without a space.
    """
    if not left:
        return right
    if not right:
        return left
    if LATIN_LETTER.fullmatch(left[-1]) and LATIN_LETTER.fullmatch(right[0]):
        return left + right
    return f"{left} {right}"


def merge_with_next(segments: list[Segment], index: int) -> int | None:
    """Merge segment index with index + 1. Returns the merged index, or None."""
    if not _in_range(segments, index) or index == len(segments) - 1:
        logger.debug("merge_with_next ignored: index %d of %d", index, len(segments))
        return None

    left, right = segments[index], segments[index + 1]
    segments[index] = Segment(
        text=join_texts(left.text, right.text),
        start_time=left.start_time,
        end_time=right.end_time,
    )
    del segments[index + 1]
    return index


def merge_with_previous(segments: list[Segment], index: int) -> int | None:
    if not _in_range(segments, index) or index == 0:
        logger.debug("merge_with_previous ignored: index %d of %d", index, len(segments))
        return None
    return merge_with_next(segments, index - 1)


def insert_after(segments: list[Segment], index: int) -> int | None:
    """Insert an empty placeholder after index, taking the second half of its interval."""
    if not _in_range(segments, index):
        logger.debug("insert_after ignored: index %d of %d", index, len(segments))
        return None

    seg = segments[index]
    midpoint = (seg.start_time + seg.end_time) / 2
    placeholder = Segment(text="", start_time=midpoint, end_time=seg.end_time)
    seg.end_time = midpoint
    segments.insert(index + 1, placeholder)
    return index + 1


def split_at(segments: list[Segment], index: int, offset: int) -> int | None:
    """Split a segment's text at a character offset.

    Both halves are trimmed and the interval is divided in proportion to
    their lengths. Returns the index of the second half, or None when the
    split would leave an empty side.
    """
    if not _in_range(segments, index):
        logger.debug("split_at ignored: index %d of %d", index, len(segments))
        return None

    seg = segments[index]
    left = seg.text[:offset].rstrip()
    right = seg.text[offset:].lstrip()
    if offset <= 0 or not left or not right:
        return None

    boundary = seg.start_time + (seg.end_time - seg.start_time) * len(left) / (len(left) + len(right))
    segments[index] = Segment(text=left, start_time=seg.start_time, end_time=boundary)
    segments.insert(index + 1, Segment(text=right, start_time=boundary, end_time=seg.end_time))
    return index + 1


def edit_text(segments: list[Segment], index: int, text: str) -> bool:
    """Replace a segment's text. Timings are not recomputed."""
    if not _in_range(segments, index):
        logger.debug("edit_text ignored: index %d of %d", index, len(segments))
        return False
    segments[index].text = text
    return True
