# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-29
# Description: TextChunk
# -----------------------------------------------------------------------------
import re
from dataclasses import dataclass
from typing import Any, Dict

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class TextChunk:
    """
    One bounded-size window of a source document.
    `start_offset` / `end_offset` are character offsets into the (normalized) source,
    so source[start_offset:end_offset] == text.
    """

    text: str
    start_offset: int
    index: int
    total_chunks: int = 1

    @property
    def end_offset(self) -> int:
        return self.start_offset + len(self.text)

    @property
    def chunk_id(self) -> str:
        return f"chunk_{self.index}_{self.start_offset}_{self.end_offset}"

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def sentence_count(self) -> int:
        return len([s for s in _SENTENCE_SPLIT.split(self.text) if s.strip()])

    def to_metadata(self) -> Dict[str, Any]:
        """Flat metadata dict for logging / storage next to the vector."""
        return {
            "chunk_id": self.chunk_id,
            "chunk_index": self.index,
            "total_chunks": self.total_chunks,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "word_count": self.word_count,
            "char_count": self.char_count,
            "sentence_count": self.sentence_count,
        }

    def short_preview(self, n: int = 120) -> str:
        """Return a compact text preview for logging/debugging."""
        clean = " ".join(self.text.split())
        preview = (clean[:n] + "...") if len(clean) > n else clean
        return f"[#{self.index} @{self.start_offset}] {preview}"
