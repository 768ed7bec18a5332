# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-29
# Description: TextNormalizer
# -----------------------------------------------------------------------------

DEFAULT_SAFE_PUNCTUATION = ".,!?'-"


class TextNormalizer:
    """
    Canonicalizes raw text before fingerprinting / keyword work:
      - case-folds
      - drops characters outside the safe set (letters, digits, safe punctuation)
      - collapses every whitespace run (newlines, tabs, CR...) to one space
      - trims

    The steps run in that order so that normalize(normalize(x)) == normalize(x).
    Total over str: never raises.
    """

    def __init__(
        self,
        *,
        safe_punctuation: str = DEFAULT_SAFE_PUNCTUATION,
        allow_non_ascii: bool = True,
        lowercase: bool = True,
    ):
        self.safe_punctuation = frozenset(safe_punctuation)
        self.allow_non_ascii = allow_non_ascii
        self.lowercase = lowercase

    def _is_safe(self, ch: str) -> bool:
        if ch.isspace():
            return True
        if ch.isalnum():
            return self.allow_non_ascii or ch.isascii()
        return ch in self.safe_punctuation

    def normalize(self, raw: str) -> str:
        if not raw:
            return ""

        text = raw.casefold() if self.lowercase else raw
        text = "".join(ch for ch in text if self._is_safe(ch))

        # str.split() with no args splits on any unicode whitespace run and drops the ends
        return " ".join(text.split())


_default = TextNormalizer()


def normalize(raw: str) -> str:
    """Normalize with the default safe set."""
    return _default.normalize(raw)
