import pytest
import requests

from llm import (
    ASSISTANT_PERSONA,
    GeminiClient,
    GenerationError,
    build_context_prompt,
    build_faq_prompt,
    build_general_prompt,
)


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response=None, error: Exception = None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


def _ok(text: str) -> FakeResponse:
    return FakeResponse({"candidates": [{"content": {"parts": [{"text": text}]}}]})


def _client(session: FakeSession, api_key: str = "test-key") -> GeminiClient:
    return GeminiClient(api_key=api_key, model="gemini-test", timeout=2.5, session=session)


def test_generate_returns_stripped_text() -> None:
    session = FakeSession(_ok("  Try the SLC.  "))

    assert _client(session).generate("prompt", 128) == "Try the SLC."

    url, kwargs = session.requests[0]
    assert url.endswith("/gemini-test:generateContent")
    assert kwargs["timeout"] == 2.5
    assert kwargs["headers"]["x-goog-api-key"] == "test-key"
    assert kwargs["json"]["generationConfig"]["maxOutputTokens"] == 128
    assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "prompt"


def test_multiple_parts_are_joined() -> None:
    payload = {"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "there"}]}}]}

    assert _client(FakeSession(FakeResponse(payload))).generate("p", 10) == "Hello there"


def test_missing_key_fails_without_network() -> None:
    session = FakeSession(_ok("unused"))
    client = _client(session, api_key="  ")

    assert not client.enabled
    with pytest.raises(GenerationError):
        client.generate("prompt", 10)
    assert session.requests == []


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(error=requests.ConnectionError("down")),
        FakeSession(FakeResponse({"error": {"message": "API key not valid"}}, status_code=400)),
        FakeSession(FakeResponse(ValueError("not json"))),
        FakeSession(FakeResponse({"promptFeedback": {"blockReason": "SAFETY"}})),
        FakeSession(FakeResponse({"candidates": []})),
        FakeSession(_ok("   ")),
        FakeSession(FakeResponse({"error": {"code": 500}})),
        FakeSession(FakeResponse(["not", "an", "object"])),
        FakeSession(FakeResponse({"candidates": ["oops"]})),
        FakeSession(FakeResponse({"candidates": [{"content": "text"}]})),
        FakeSession(FakeResponse({"candidates": [{"content": {"parts": ["raw string"]}}]})),
    ],
    ids=[
        "timeout",
        "connection",
        "http-400",
        "invalid-json",
        "blocked",
        "no-candidates",
        "blank-text",
        "error-body",
        "non-object",
        "non-object-candidate",
        "non-object-content",
        "non-object-part",
    ],
)
def test_failures_become_generation_errors(session: FakeSession) -> None:
    with pytest.raises(GenerationError):
        _client(session).generate("prompt", 10)


def test_general_prompt_includes_question() -> None:
    prompt = build_general_prompt("what clubs exist")

    assert prompt.startswith(ASSISTANT_PERSONA)
    assert "Question: what clubs exist" in prompt
    assert prompt.endswith("Answer:")


def test_faq_prompt_includes_entry() -> None:
    prompt = build_faq_prompt("study spots?", "Where can I study?", "Davis Centre Library.")

    assert "FAQ: Where can I study? -> Davis Centre Library." in prompt
    assert "User: study spots?" in prompt


def test_context_prompt_lists_faqs_in_order() -> None:
    prompt = build_context_prompt("q", [("First?", "One."), ("Second?", "Two.")])

    assert prompt.index("First?") < prompt.index("Second?")
    assert "Student: q" in prompt


def test_context_prompt_drops_least_relevant_facts_over_budget() -> None:
    long_answer = " ".join(["word"] * 40)
    faqs = [("Top question?", "Short."), ("Other question?", long_answer)]

    prompt = build_context_prompt("q", faqs, max_words=60)

    assert "Top question?" in prompt
    assert "Other question?" not in prompt
