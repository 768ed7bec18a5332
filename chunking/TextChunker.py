# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-29
# Updated: 2026-10-18
# Description: TextChunker
# -----------------------------------------------------------------------------
import logging
import re
from typing import List, Optional, Tuple

from chunking.TextChunk import TextChunk
from errors.RetrievalErrors import ConfigurationError
from settings import CHUNK_DEFAULTS
from utility.logging_utils import get_class_logger

CHUNK_MODES = ("characters", "sentences", "paragraphs")

# terminal punctuation followed by whitespace or end of text, so "3.5" does not end a sentence
_SENTENCE_END = re.compile(r"[.!?]+(?=\s|\Z)")
# a blank line (possibly holding spaces or tabs) separates paragraphs
_PARAGRAPH_BREAK = re.compile(r"\n[^\S\n]*\n\s*")


def validate_chunk_params(max_size: int, overlap: int) -> None:
    if not isinstance(max_size, int) or isinstance(max_size, bool) or max_size <= 0:
        raise ConfigurationError(f"max_size must be a positive int, got {max_size!r}")
    if not isinstance(overlap, int) or isinstance(overlap, bool) or overlap < 0:
        raise ConfigurationError(f"overlap must be a non-negative int, got {overlap!r}")
    # guard against bad config that can cause infinite loops
    if overlap >= max_size:
        raise ConfigurationError(f"overlap ({overlap}) must be < max_size ({max_size})")


def validate_chunk_mode(mode: str) -> None:
    if mode not in CHUNK_MODES:
        raise ConfigurationError(f"mode must be one of {', '.join(CHUNK_MODES)}, got {mode!r}")


class TextChunker:
    """
    Splits text into character windows of at most `max_size` characters.

    Window i+1 starts `overlap` characters before the end of window i, so the tail of
    one chunk is repeated at the head of the next. Window ends snap back to the nearest
    preceding whitespace when there is one past the overlap region; otherwise the
    window is hard-cut at `max_size`. A chunk never opens on whitespace.

    mode="sentences" / mode="paragraphs" pack whole sentences (or blank-line separated
    paragraphs) greedily up to `max_size`; the next chunk repeats as many trailing
    units as fit in `overlap`. A single unit longer than `max_size` falls back to
    character windows. In every mode a chunk is an exact slice of the input.
    """

    def __init__(
        self,
        *,
        max_size: int = CHUNK_DEFAULTS["max_size"],
        overlap: int = CHUNK_DEFAULTS["overlap"],
        mode: str = CHUNK_DEFAULTS["mode"],
        logger: logging.Logger | None = None,
    ):
        validate_chunk_params(max_size, overlap)
        validate_chunk_mode(mode)
        self.max_size = max_size
        self.overlap = overlap
        self.mode = mode
        self.logger = logger or get_class_logger(self.__class__)

    @staticmethod
    def _snap_end(text: str, start: int, hard_end: int, overlap: int) -> int:
        """
        Pick the exclusive end of the window [start, hard_end).
        The result is always > start + overlap so the next window moves forward.
        """
        floor = start + overlap

        if text[hard_end].isspace():
            end = hard_end
        else:
            end = -1
            for i in range(hard_end - 1, floor, -1):
                if text[i].isspace():
                    end = i
                    break
            if end == -1:
                # no boundary inside the window: hard cut mid-word
                return hard_end

        while end - 1 > floor and text[end - 1].isspace():
            end -= 1
        return end

    def _spans(self, text: str, lo: int, hi: int, max_size: int, overlap: int) -> List[Tuple[int, int]]:
        spans: List[Tuple[int, int]] = []
        start = lo

        while True:
            hard_end = start + max_size
            if hard_end >= hi:
                spans.append((start, hi))
                break

            end = self._snap_end(text, start, hard_end, overlap)
            spans.append((start, end))

            next_start = end - overlap
            while next_start < hi and text[next_start].isspace():
                next_start += 1
            start = next_start

        return spans

    @staticmethod
    def _units(text: str, lo: int, hi: int, mode: str) -> List[Tuple[int, int]]:
        """Whitespace-trimmed (start, end) spans of each sentence or paragraph in text[lo:hi]."""
        units: List[Tuple[int, int]] = []

        def add(s: int, e: int) -> None:
            while s < e and text[s].isspace():
                s += 1
            while e > s and text[e - 1].isspace():
                e -= 1
            if s < e:
                units.append((s, e))

        pattern = _SENTENCE_END if mode == "sentences" else _PARAGRAPH_BREAK
        pos = lo
        for m in pattern.finditer(text, lo, hi):
            # sentences keep their punctuation; paragraph breaks belong to neither side
            add(pos, m.end() if mode == "sentences" else m.start())
            pos = m.end()
        add(pos, hi)
        return units

    def _pack(
        self,
        text: str,
        lo: int,
        hi: int,
        max_size: int,
        overlap: int,
        mode: str,
    ) -> List[Tuple[int, int]]:
        units: List[Tuple[int, int]] = []
        for s, e in self._units(text, lo, hi, mode):
            if e - s > max_size:
                units.extend(self._spans(text, s, e, max_size, overlap))
            else:
                units.append((s, e))

        spans: List[Tuple[int, int]] = []
        i = 0
        while i < len(units):
            start = units[i][0]
            j = i
            while j + 1 < len(units) and units[j + 1][1] - start <= max_size:
                j += 1
            end = units[j][1]
            spans.append((start, end))
            if j + 1 >= len(units):
                break

            # step back over trailing units that fit in the overlap and still leave room for the next one
            k = j + 1
            while (
                k - 1 > i
                and end - units[k - 1][0] <= overlap
                and units[j + 1][1] - units[k - 1][0] <= max_size
            ):
                k -= 1
            i = k
        return spans

    def chunk(
        self,
        text: str,
        max_size: Optional[int] = None,
        overlap: Optional[int] = None,
        mode: Optional[str] = None,
    ) -> List[TextChunk]:
        max_size = self.max_size if max_size is None else max_size
        overlap = self.overlap if overlap is None else overlap
        mode = self.mode if mode is None else mode
        validate_chunk_params(max_size, overlap)
        validate_chunk_mode(mode)

        if not isinstance(text, str):
            raise TypeError(f"`text` must be str, got {type(text).__name__}")

        # Offsets stay relative to the text as given; only the outer whitespace is dropped
        lo = len(text) - len(text.lstrip())
        hi = len(text.rstrip())
        if lo >= hi:
            return []

        if hi - lo <= max_size:
            spans = [(lo, hi)]
        elif mode == "characters":
            spans = self._spans(text, lo, hi, max_size, overlap)
        else:
            spans = self._pack(text, lo, hi, max_size, overlap, mode)

        total = len(spans)
        chunks = [
            TextChunk(text=text[s:e], start_offset=s, index=i, total_chunks=total)
            for i, (s, e) in enumerate(spans)
        ]

        if total > 1:
            avg_len = sum(c.char_count for c in chunks) / total
            self.logger.debug(
                "Chunking Summary: mode=%s chars=%d chunks=%d | avg_len=%.1f | max_size=%d overlap=%d",
                mode,
                hi - lo,
                total,
                avg_len,
                max_size,
                overlap,
            )
        return chunks


_default: TextChunker | None = None


def chunk(text: str, max_size: int, overlap: int, mode: str = "characters") -> List[TextChunk]:
    """Chunk with explicit parameters using a shared chunker instance."""
    global _default
    if _default is None:
        _default = TextChunker()
    return _default.chunk(text, max_size=max_size, overlap=overlap, mode=mode)
