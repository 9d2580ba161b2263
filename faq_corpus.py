"""
FAQ Corpus

Loads the static question/answer list the matcher scores against. The source
is a JSON array of {"question": str, "answer": str} objects; order in the file
is the order the matcher iterates, which decides ties.

A missing or malformed source never stops the server: `load_corpus_or_empty`
logs the problem and hands back an empty corpus, so every query falls through
to the generative or static path.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from exception_logger import exception_logger


class CorpusLoadError(Exception):
    """Raised when the FAQ source is missing or malformed."""


@dataclass(frozen=True)
class FAQEntry:
    question: str
    answer: str


class FAQCorpus:
    """Ordered, read-only collection of FAQ entries."""

    def __init__(self, entries: Iterable[FAQEntry] = ()):
        self._entries = tuple(entries)

    @classmethod
    def from_records(cls, records) -> "FAQCorpus":
        """
        Build a corpus from decoded JSON.

        Args:
            records: List of mappings with string "question" and "answer" keys

        Raises:
            CorpusLoadError: If the document is not a list or an entry lacks
                a string question or answer.
        """
        if not isinstance(records, list):
            raise CorpusLoadError(
                f"FAQ source must be a JSON array, got {type(records).__name__}"
            )

        entries: List[FAQEntry] = []
        for idx, record in enumerate(records):
            if not isinstance(record, dict):
                raise CorpusLoadError(f"FAQ entry {idx} is not an object")
            question = record.get("question")
            answer = record.get("answer")
            if not isinstance(question, str) or not isinstance(answer, str):
                raise CorpusLoadError(f"FAQ entry {idx} needs string 'question' and 'answer'")
            entries.append(FAQEntry(question=question, answer=answer))
        return cls(entries)

    @property
    def entries(self):
        return self._entries

    def __iter__(self) -> Iterator[FAQEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> FAQEntry:
        return self._entries[index]


def load_corpus(path: Union[str, Path]) -> FAQCorpus:
    """
    Read a FAQ corpus from a JSON file.

    Raises:
        CorpusLoadError: If the file cannot be read or parsed.
    """
    source = Path(path)
    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise CorpusLoadError(f"Cannot read FAQ source {source}: {exc}") from exc

    try:
        records = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorpusLoadError(f"FAQ source {source} is not valid JSON: {exc}") from exc

    return FAQCorpus.from_records(records)


def load_corpus_or_empty(path: Union[str, Path]) -> FAQCorpus:
    """Load the corpus, degrading to an empty one when the source is unusable."""
    try:
        corpus = load_corpus(path)
    except CorpusLoadError as exc:
        exception_logger.log_exception(exc, "faq_corpus", f"Loading {path}")
        print("[FAQ] corpus unavailable, continuing with 0 entries")
        return FAQCorpus()

    print(f"[FAQ] loaded {len(corpus)} entries from {path}")
    return corpus
