# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Updated: 2026-10-11
# Description: KeywordExtractor
# -----------------------------------------------------------------------------
import re
from collections import Counter
from typing import FrozenSet, Iterable, List, Optional

from keywords.KeywordResult import KeywordResult
from settings import KEYWORD_DEFAULTS

# Unicode letters/digits; underscore counts as a separator
_TOKEN_RE = re.compile(r"[^\W_]+")

STOP_WORDS: FrozenSet[str] = frozenset({
    # articles
    "a", "an", "the",
    # conjunctions
    "and", "or", "but", "nor", "so", "yet", "if", "then", "than", "because", "while",
    "although", "though", "unless", "whether",
    # prepositions
    "about", "above", "across", "after", "against", "along", "among", "around", "at",
    "before", "behind", "below", "beneath", "beside", "between", "beyond", "by", "down",
    "during", "except", "for", "from", "in", "inside", "into", "near", "of", "off", "on",
    "onto", "out", "outside", "over", "per", "since", "through", "throughout", "till",
    "to", "toward", "towards", "under", "until", "up", "upon", "via", "with", "within",
    "without",
    # pronouns / determiners
    "i", "me", "my", "mine", "myself", "we", "us", "our", "ours", "ourselves", "you",
    "your", "yours", "yourself", "yourselves", "he", "him", "his", "himself", "she",
    "her", "hers", "herself", "it", "its", "itself", "they", "them", "their", "theirs",
    "themselves", "this", "that", "these", "those", "who", "whom", "whose", "which",
    "what", "each", "every", "some", "any", "all", "both", "either", "neither", "such",
    # auxiliaries and other glue words
    "is", "am", "are", "was", "were", "be", "been", "being", "have", "has", "had",
    "having", "do", "does", "did", "doing", "will", "would", "shall", "should", "can",
    "could", "may", "might", "must", "not", "no", "as", "also", "just", "very", "too",
    "there", "here", "when", "where", "why", "how", "other", "only", "own", "same",
    "more", "most", "few",
})


class KeywordExtractor:
    """
    Frequency-ranked keywords: tokenize on non-alphanumerics, lowercase, drop stop
    words and short tokens. Ties keep first-seen order, so output is deterministic.
    """

    def __init__(
        self,
        *,
        min_length: int = KEYWORD_DEFAULTS["min_length"],
        stop_words: Iterable[str] = STOP_WORDS,
        limit: Optional[int] = KEYWORD_DEFAULTS["limit"] or None,
    ):
        self.min_length = min_length
        self.stop_words = frozenset(w.lower() for w in stop_words)
        self.limit = limit

    def tokenize(self, text: str) -> List[str]:
        return [
            tok
            for tok in _TOKEN_RE.findall((text or "").lower())
            if len(tok) >= self.min_length and tok not in self.stop_words
        ]

    def extract(self, text: str, limit: Optional[int] = None) -> List[KeywordResult]:
        counts = Counter(self.tokenize(text))  # insertion order == first-seen order
        if not counts:
            return []

        # sorted() is stable, so equal frequencies keep first-seen order
        ranked = sorted(counts.items(), key=lambda kv: -kv[1])

        limit = self.limit if limit is None else limit
        if limit is not None and limit > 0:
            ranked = ranked[:limit]

        return [KeywordResult(term=t, frequency=f) for t, f in ranked]

    def terms(self, text: str) -> List[str]:
        return [k.term for k in self.extract(text)]


def keyword_similarity(a: Iterable[KeywordResult], b: Iterable[KeywordResult]) -> float:
    """Jaccard overlap of the two term sets, in [0, 1]. Empty vs anything is 0."""
    terms_a = {k.term for k in a}
    terms_b = {k.term for k in b}
    if not terms_a or not terms_b:
        return 0.0
    return len(terms_a & terms_b) / len(terms_a | terms_b)


_default = KeywordExtractor()


def extract_keywords(text: str) -> List[KeywordResult]:
    return _default.extract(text)
