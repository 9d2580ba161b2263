"""
Large Language Model Integration for the FAQ assistant

Wraps the Google Gemini REST API behind a single call,
`generate(prompt, max_tokens) -> str`, and builds the prompts the router
sends through it.

Key Features:
- One request per call with an explicit timeout; no retries
- Every failure mode (missing key, network error, timeout, non-2xx,
  blocked prompt, empty text) surfaces as GenerationError
- Prompt builders for unguided questions and FAQ-grounded answers
- Prompt word budget enforced by dropping the least relevant FAQ facts first

Configuration:
- GOOGLE_API_KEY enables the client; without it every call fails fast
- GEMINI_MODEL, GEMINI_ENDPOINT, GEMINI_TIMEOUT_SECONDS, GEMINI_TEMPERATURE
  (see config.ChatbotConfig)

Dependencies:
- requests: HTTP client for the Gemini REST endpoint
"""

import time
from typing import List, Optional, Sequence, Tuple

import requests

from config import ChatbotConfig

ASSISTANT_PERSONA = "You are a helpful assistant for University of Waterloo students."

DEFAULT_TIMEOUT = 5.0
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"


class GenerationError(RuntimeError):
    """Raised when the generative backend cannot produce an answer."""


class GeminiClient:
    """
    Text completion against the Gemini `generateContent` endpoint.

    The client is safe to share between request threads: the only state is a
    `requests.Session`, used for connection reuse.

    Attributes:
        api_key (str): Gemini API key; empty disables generation
        model (str): Model name, e.g. "gemini-1.5-flash"
        endpoint (str): Base URL of the models collection
        timeout (float): Seconds before a call is abandoned
        temperature (float): Sampling temperature
        session (requests.Session): Persistent HTTP session
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        temperature: float = DEFAULT_TEMPERATURE,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: ChatbotConfig) -> "GeminiClient":
        return cls(
            api_key=config.google_api_key,
            model=config.gemini_model,
            endpoint=config.gemini_endpoint,
            timeout=config.generation_timeout,
            temperature=config.temperature,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    # ---------------------------------------------------------------- Response Generation

    def generate(self, prompt: str, max_tokens: int) -> str:
        """
        Generate a completion for the prompt.

        Args:
            prompt (str): Full prompt text
            max_tokens (int): Output token budget

        Returns:
            str: Generated text, stripped

        Raises:
            GenerationError: On any failure, including an empty answer
        """
        if not self.enabled:
            raise GenerationError("Missing GOOGLE_API_KEY")

        start = time.time()
        try:
            response = self.session.post(
                f"{self.endpoint}/{self.model}:generateContent",
                headers={"x-goog-api-key": self.api_key},
                json={
                    "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                    "generationConfig": {
                        "temperature": self.temperature,
                        "maxOutputTokens": int(max_tokens),
                    },
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as exc:
            raise GenerationError(f"Gemini timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise GenerationError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationError(f"Gemini returned invalid JSON: {exc}") from exc

        text = _extract_text(data)
        self._log_metrics(prompt, start, time.time())
        return text

    def _log_metrics(self, prompt: str, start_time: float, end_time: float):
        print(
            f"[LLM] latency total={end_time - start_time:.2f}s"
            f" | prompt_words≈{len(prompt.split())}"
        )


def _extract_text(data) -> str:
    if not isinstance(data, dict):
        raise GenerationError("Gemini response is not an object")

    if data.get("error"):
        raise GenerationError(f"Gemini error: {data['error']}")

    feedback = data.get("promptFeedback") or {}
    block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
    if block_reason:
        raise GenerationError(f"Prompt blocked (blockReason={block_reason})")

    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        raise GenerationError("Gemini candidates are not a list")

    parts = []
    for candidate in candidates[:1]:
        if not isinstance(candidate, dict):
            raise GenerationError("Gemini candidate is not an object")
        content = candidate.get("content") or {}
        if not isinstance(content, dict):
            raise GenerationError("Gemini candidate content is not an object")
        for part in content.get("parts") or []:
            if not isinstance(part, dict):
                raise GenerationError("Gemini content part is not an object")
            if isinstance(part.get("text"), str):
                parts.append(part["text"])

    text = "".join(parts).strip()
    if not text:
        raise GenerationError("Gemini returned an empty response")
    return text


# ------------------------------------------------------------- Prompt Engineering

def build_general_prompt(question: str) -> str:
    """Prompt for a question with no usable FAQ match."""
    return f"{ASSISTANT_PERSONA}\nQuestion: {question}\nAnswer:"


def build_faq_prompt(question: str, faq_question: str, faq_answer: str) -> str:
    """Prompt grounding the answer in one FAQ entry."""
    return (
        f"{ASSISTANT_PERSONA}\n"
        "Use the FAQ to answer naturally.\n"
        f"FAQ: {faq_question} -> {faq_answer}\n"
        f"User: {question}\n"
        "Assistant:"
    )


def build_context_prompt(
    question: str,
    faqs: Sequence[Tuple[str, str]],
    max_words: int = 700,
) -> str:
    """
    Prompt grounding the answer in several FAQ entries.

    Args:
        question: Raw user message
        faqs: (question, answer) pairs, most relevant first
        max_words: Prompt budget; trailing facts are dropped to fit

    Returns:
        str: Prompt text
    """
    facts = [f"{idx}. Q: {q}\n   A: {a}" for idx, (q, a) in enumerate(faqs, start=1)]
    prompt = _compose_context_prompt(question, facts)

    while len(prompt.split()) > max_words and facts:
        facts.pop()
        prompt = _compose_context_prompt(question, facts)

    return prompt


def _compose_context_prompt(question: str, facts: List[str]) -> str:
    facts_section = "\n".join(facts) or "No specific FAQ entries were available."
    return (
        f"{ASSISTANT_PERSONA}\n"
        "Answer the student's question using the FAQ entries below when they apply.\n"
        "- Be concise and friendly.\n"
        "- Do not invent campus locations, dates or policies.\n\n"
        f"Relevant FAQs:\n{facts_section}\n\n"
        f"Student: {question}\n"
        "Assistant:"
    )
