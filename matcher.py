"""
Question-Answer Matching Engine

Scores free-text student questions against the FAQ corpus. Two modes share
the same normalization and tokenization:

- Strict mode (`search_faq`): three ordered passes (exact, phrase
  containment, token overlap). Returns an answer or None; there is no
  confidence, a hit is a hit.
- Ranked mode (`find_most_relevant_faq`, `find_relevant_faqs`): every entry
  gets a confidence in [0, 1] from a fixed precedence table, and the best
  entry (or the best few) is returned even when the score is low. The router
  decides what a low score means.

Algorithm (ranked, first applicable rule wins per entry):
- normalized equality -> 1.0
- keyword rules on the lowercased text ("off-campus", "residence", "food")
- substring containment either way -> 0.8 or 0.5 depending on length ratio
- token overlap ratio -> ratio * 0.7, or 0.3 for any overlap at all

Ties keep corpus order: the earliest entry reaching the top score wins, so
repeated calls on the same corpus always pick the same entry.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from faq_corpus import FAQCorpus, FAQEntry

_NON_WORD = re.compile(r"[^\w\s']|_")
_WHITESPACE = re.compile(r"\s+")

MIN_TOKEN_LENGTH = 3

# Strict mode thresholds
PHRASE_MIN_TOKENS = 2
OVERLAP_MIN_TOKENS = 3
OVERLAP_RATIO = 0.6
OVERLAP_RATIO_LONG = 0.7
LONG_QUERY_TOKENS = 5

# Ranked mode keyword rules: every keyword must appear in both texts.
# c) and e) can never fire after b) and d); they stay so the table reads
# the same as the scoring policy it implements.
KEYWORD_RULES = (
    (("off-campus",), 0.98),
    (("food", "off-campus"), 0.98),
    (("residence",), 0.95),
    (("food", "residence"), 0.95),
    (("food",), 0.85),
)

CONTAINMENT_OVERLAP = 0.6
CONTAINMENT_HIGH = 0.8
CONTAINMENT_LOW = 0.5
TOKEN_RATIO_MIN = 0.6
TOKEN_RATIO_WEIGHT = 0.7
TOKEN_ANY_MATCH = 0.3


def normalize(text: str) -> str:
    """Lowercase, turn punctuation into spaces, collapse whitespace."""
    cleaned = _NON_WORD.sub(" ", (text or "").lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def lowered(text: str) -> str:
    """Lowercase and trim only; keeps hyphenated keywords like off-campus."""
    return (text or "").lower().strip()


def tokens(normalized_text: str) -> List[str]:
    return [word for word in normalized_text.split() if len(word) >= MIN_TOKEN_LENGTH]


def _tokens_match(a: str, b: str) -> bool:
    return a in b or b in a


def _matching_count(query_tokens: List[str], question_tokens: List[str]) -> int:
    return sum(
        1 for word in query_tokens
        if any(_tokens_match(word, q_word) for q_word in question_tokens)
    )


@dataclass(frozen=True)
class MatchResult:
    entry: Optional[FAQEntry]
    confidence: float

    @property
    def score(self) -> float:
        """Confidence on a 0-100 scale, used when listing several FAQs."""
        return round(self.confidence * 100, 2)


@dataclass(frozen=True)
class _IndexedEntry:
    entry: FAQEntry
    normalized: str
    lowered: str
    tokens: tuple


class _Query:
    def __init__(self, text: str):
        self.normalized = normalize(text)
        self.lowered = lowered(text)
        self.tokens = tokens(self.normalized)


class Matcher:
    """
    Scores user questions against a FAQ corpus.

    The corpus is read-only, so normalized questions and their tokens are
    computed once at construction and shared by every request thread without
    locking.

    Attributes:
        corpus (FAQCorpus): Entries in the order they were loaded
    """

    def __init__(self, corpus: FAQCorpus):
        self.corpus = corpus
        self._index = [
            _IndexedEntry(
                entry=entry,
                normalized=normalize(entry.question),
                lowered=lowered(entry.question),
                tokens=tuple(tokens(normalize(entry.question))),
            )
            for entry in corpus
        ]

    # ---------------------------------------------------------------- Strict mode

    def search_faq(self, text: str) -> Optional[str]:
        """
        Strict lookup returning the stored answer, or None on no match.

        Args:
            text (str): Raw user message

        Returns:
            Optional[str]: Answer of the first entry hit by the earliest pass
        """
        entry = self.search_faq_entry(text)
        return entry.answer if entry else None

    def search_faq_entry(self, text: str) -> Optional[FAQEntry]:
        """
        Strict lookup returning the matching entry itself.

        Passes run in order over the whole corpus; the first pass that
        produces a hit decides:

        1. Exact: normalized query equals a normalized question.
        2. Phrase: one contains the other and both sides have at least two
           tokens, so a lone word like "food" never drags in a longer
           question that happens to contain it.
        3. Overlap: at least three tokens on each side and a share of
           matching query tokens of 0.6 (0.7 from five query tokens up).
        """
        query = _Query(text)
        if not query.normalized:
            return None

        for item in self._index:
            if item.normalized == query.normalized:
                return item.entry

        if len(query.tokens) >= PHRASE_MIN_TOKENS:
            for item in self._index:
                contained = (
                    query.normalized in item.normalized
                    or item.normalized in query.normalized
                )
                if contained and len(item.tokens) >= PHRASE_MIN_TOKENS:
                    return item.entry

        if len(query.tokens) >= OVERLAP_MIN_TOKENS:
            threshold = (
                OVERLAP_RATIO_LONG if len(query.tokens) >= LONG_QUERY_TOKENS else OVERLAP_RATIO
            )
            for item in self._index:
                if len(item.tokens) < OVERLAP_MIN_TOKENS:
                    continue
                matching = _matching_count(query.tokens, list(item.tokens))
                if matching > 0 and matching / len(query.tokens) >= threshold:
                    return item.entry

        return None

    # ---------------------------------------------------------------- Ranked mode

    def score(self, text: str, entry: FAQEntry) -> float:
        """Confidence of a single entry for the given text."""
        query = _Query(text)
        if not query.normalized:
            return 0.0
        question = normalize(entry.question)
        item = _IndexedEntry(
            entry=entry,
            normalized=question,
            lowered=lowered(entry.question),
            tokens=tuple(tokens(question)),
        )
        return self._score(query, item)

    def rank(self, text: str, limit: Optional[int] = None) -> List[MatchResult]:
        """
        Score every entry and return those above zero, best first.

        Sorting is stable, so entries with equal scores stay in corpus order.

        Args:
            text (str): Raw user message
            limit (int, optional): Keep only the first `limit` results

        Returns:
            list[MatchResult]: Matches with confidence > 0
        """
        query = _Query(text)
        if not query.normalized:
            return []

        scored = []
        for item in self._index:
            confidence = self._score(query, item)
            if confidence > 0:
                scored.append(MatchResult(entry=item.entry, confidence=confidence))

        scored.sort(key=lambda match: match.confidence, reverse=True)
        return scored[:limit] if limit is not None else scored

    def find_most_relevant_faq(self, text: str) -> MatchResult:
        """Best single entry; MatchResult(None, 0.0) when nothing scores."""
        best = self.rank(text, limit=1)
        return best[0] if best else MatchResult(entry=None, confidence=0.0)

    def find_relevant_faqs(self, text: str, limit: int = 3) -> List[MatchResult]:
        """Top entries used as context for a generative answer."""
        return self.rank(text, limit=limit)

    def _score(self, query: _Query, item: _IndexedEntry) -> float:
        if item.normalized == query.normalized:
            return 1.0

        for keywords, keyword_score in KEYWORD_RULES:
            if all(k in query.lowered and k in item.lowered for k in keywords):
                return keyword_score

        if item.normalized in query.normalized or query.normalized in item.normalized:
            shorter = min(len(query.normalized), len(item.normalized))
            longer = max(len(query.normalized), len(item.normalized))
            overlap = shorter / longer
            return CONTAINMENT_HIGH if overlap > CONTAINMENT_OVERLAP else CONTAINMENT_LOW

        if not query.tokens:
            return 0.0
        matching = _matching_count(query.tokens, list(item.tokens))
        if matching == 0:
            return 0.0
        ratio = matching / len(query.tokens)
        return ratio * TOKEN_RATIO_WEIGHT if ratio >= TOKEN_RATIO_MIN else TOKEN_ANY_MATCH
