from dataclasses import replace
from typing import List, Optional, Tuple

import pytest

from config import ChatbotConfig
from faq_corpus import FAQCorpus, FAQEntry
from llm import GenerationError
from matcher import Matcher


FAQ_RECORDS = [
    {"question": "How do I find off-campus housing?", "answer": "Visit the Off-Campus Housing Office."},
    {"question": "Where can I get food off-campus?", "answer": "Try University Plaza."},
    {"question": "How do I apply for residence?", "answer": "Use the Campus Housing portal."},
    {"question": "Where is the food court in the SLC?", "answer": "On the main floor of the SLC."},
    {"question": "How do I activate my U-Pass for GRT buses?", "answer": "Tap your WatCard on entry."},
    {"question": "Where are the best places to study late at night?", "answer": "Davis Centre Library."},
]


class FakeBackend:
    """Stands in for the Gemini client; records every prompt it receives."""

    def __init__(self, reply: Optional[str] = "Generated answer.", error: Optional[str] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Tuple[str, int]] = []

    def generate(self, prompt: str, max_tokens: int) -> str:
        self.calls.append((prompt, max_tokens))
        if self.error:
            raise GenerationError(self.error)
        return self.reply


@pytest.fixture
def corpus() -> FAQCorpus:
    return FAQCorpus.from_records(FAQ_RECORDS)


@pytest.fixture
def matcher(corpus: FAQCorpus) -> Matcher:
    return Matcher(corpus)


@pytest.fixture
def entries(corpus: FAQCorpus) -> List[FAQEntry]:
    return list(corpus)


@pytest.fixture
def config(monkeypatch: pytest.MonkeyPatch) -> ChatbotConfig:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    return replace(
        ChatbotConfig.from_env(),
        google_api_key="",
        error_log_path="",
        confidence_threshold=0.85,
        history_view_limit=10,
        history_max_turns=None,
    )
