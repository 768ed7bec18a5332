# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: KeywordResult
# -----------------------------------------------------------------------------
from dataclasses import dataclass


@dataclass(frozen=True)
class KeywordResult:
    """A term and how many times it occurred in the source text."""
    term: str
    frequency: int
