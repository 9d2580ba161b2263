"""
Response Routing for the FAQ assistant

Turns a matcher result into an answer and tags it with where it came from.
Each question goes down exactly one of four routes:

- FAQ_DIRECT: confident match, the stored answer is returned as is
- GENERATIVE_BLENDED: plausible match, the model answers with the matched
  FAQ entries as context
- GENERATIVE_UNGUIDED: nothing matched, the model answers the raw question
- STATIC_FALLBACK: the model call failed; the matched entry is paraphrased
  from a fixed template, or a keyword rule supplies a canned answer

Failure handling is layered: a GenerationError never reaches the caller, it
only moves the request to the next tier (blended -> FAQ paraphrase,
unguided -> keyword fallback). Generation is attempted once per request.

Two entry points mirror the two HTTP endpoints:
- route_question: single best match, used by /ask
- route_message: strict lookup plus top-K context, used by /chat
"""

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from exception_logger import exception_logger
from faq_corpus import FAQEntry
from llm import GenerationError, build_context_prompt, build_faq_prompt, build_general_prompt
from matcher import Matcher, MatchResult
from static_fallback import get_intelligent_response, match_intent

SOURCE_FAQ = "faq"
SOURCE_FAQ_FALLBACK = "faq_fallback"
SOURCE_GENERATIVE_GENERAL = "generative_general"
SOURCE_GENERATIVE_ENHANCED = "generative_enhanced"
SOURCE_GENERATIVE_WITH_CONTEXT = "generative_with_faq_context"
SOURCE_INTELLIGENT = "intelligent_response"

DEFAULT_CONFIDENCE_THRESHOLD = 0.85

FALLBACK_TEMPLATES = (
    "Based on the information I have: {answer}",
    "Here’s what I can tell you: {answer}",
    "Great question! {answer}",
)


class Route(Enum):
    FAQ_DIRECT = "faq_direct"
    GENERATIVE_BLENDED = "generative_blended"
    GENERATIVE_UNGUIDED = "generative_unguided"
    STATIC_FALLBACK = "static_fallback"


@dataclass(frozen=True)
class RoutingDecision:
    route: Route
    text: str
    source: str
    confidence: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def generation_failed(self) -> bool:
        return bool(self.metadata.get("generation_failed"))


class ResponseRouter:
    """
    Chooses how to answer a question and produces the answer.

    Attributes:
        matcher (Matcher): Scores questions against the FAQ corpus
        backend: Object with `generate(prompt, max_tokens) -> str` raising
            GenerationError; None behaves like an unreachable backend
        threshold (float): Confidence at or above which the FAQ answer is
            returned directly
        context_limit (int): FAQ entries handed to the /chat prompt
        rng (random.Random): Picks paraphrase templates; seed it for
            reproducible output
    """

    def __init__(
        self,
        matcher: Matcher,
        backend=None,
        threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        context_limit: int = 3,
        chat_max_tokens: int = 400,
        ask_max_tokens: int = 512,
        max_prompt_words: int = 700,
        rng: Optional[random.Random] = None,
        intent_fallback: Callable[[str], str] = get_intelligent_response,
    ):
        self.matcher = matcher
        self.backend = backend
        self.threshold = threshold
        self.context_limit = context_limit
        self.chat_max_tokens = chat_max_tokens
        self.ask_max_tokens = ask_max_tokens
        self.max_prompt_words = max_prompt_words
        self.rng = rng or random.Random()
        self.intent_fallback = intent_fallback

    # ---------------------------------------------------------------- Entry points

    def route_question(self, question: str) -> RoutingDecision:
        """
        Answer using the single most relevant FAQ entry (/ask).

        Args:
            question (str): Raw user question

        Returns:
            RoutingDecision: Answer, provenance and the confidence behind it
        """
        match = self.matcher.find_most_relevant_faq(question)
        if match.entry is None:
            return self._unguided(question, self.ask_max_tokens)

        metadata = {"matched_questions": [match.entry.question]}
        if match.confidence >= self.threshold:
            return self._direct(match.entry, match.confidence, metadata)

        prompt = build_faq_prompt(question, match.entry.question, match.entry.answer)
        return self._blended(
            prompt,
            self.ask_max_tokens,
            SOURCE_GENERATIVE_ENHANCED,
            match,
            metadata,
        )

    def route_message(self, message: str) -> RoutingDecision:
        """
        Answer a chat message using strict lookup and top-K context (/chat).

        A strict hit or a top match at or above the threshold is answered
        from the corpus. Otherwise the top entries are blended into one
        generative prompt.
        """
        relevant = self.matcher.find_relevant_faqs(message, limit=self.context_limit)

        strict = self.matcher.search_faq_entry(message)
        if strict is not None:
            # the answering entry leads the list even when it ranks lower
            hit = MatchResult(strict, self.matcher.score(message, strict))
            listed = [hit] + [m for m in relevant if m.entry != strict][: self.context_limit - 1]
            metadata = _match_metadata(listed)
            metadata["strict_match"] = True
            return self._direct(strict, hit.confidence, metadata)

        metadata = _match_metadata(relevant)
        if not relevant:
            return self._unguided(message, self.chat_max_tokens)

        best = relevant[0]
        if best.confidence >= self.threshold:
            return self._direct(best.entry, best.confidence, metadata)

        prompt = build_context_prompt(
            message,
            [(m.entry.question, m.entry.answer) for m in relevant],
            max_words=self.max_prompt_words,
        )
        return self._blended(
            prompt,
            self.chat_max_tokens,
            SOURCE_GENERATIVE_WITH_CONTEXT,
            best,
            metadata,
        )

    # ---------------------------------------------------------------- Routes

    def _direct(self, entry: FAQEntry, confidence: float, metadata: Dict[str, Any]) -> RoutingDecision:
        return RoutingDecision(
            route=Route.FAQ_DIRECT,
            text=entry.answer,
            source=SOURCE_FAQ,
            confidence=confidence,
            metadata=dict(metadata, route=Route.FAQ_DIRECT.value),
        )

    def _blended(
        self,
        prompt: str,
        max_tokens: int,
        source: str,
        match: MatchResult,
        metadata: Dict[str, Any],
    ) -> RoutingDecision:
        try:
            text = self._generate(prompt, max_tokens)
        except GenerationError as exc:
            exception_logger.log_exception(exc, "response_manager", "FAQ-grounded generation")
            return RoutingDecision(
                route=Route.STATIC_FALLBACK,
                text=self.paraphrase(match.entry),
                source=SOURCE_FAQ_FALLBACK,
                confidence=match.confidence,
                metadata=dict(
                    metadata,
                    route=Route.STATIC_FALLBACK.value,
                    generation_failed=True,
                ),
            )

        return RoutingDecision(
            route=Route.GENERATIVE_BLENDED,
            text=text,
            source=source,
            confidence=match.confidence,
            metadata=dict(metadata, route=Route.GENERATIVE_BLENDED.value),
        )

    def _unguided(self, question: str, max_tokens: int) -> RoutingDecision:
        try:
            text = self._generate(build_general_prompt(question), max_tokens)
        except GenerationError as exc:
            exception_logger.log_exception(exc, "response_manager", "Unguided generation")
            rule = match_intent(question)
            return RoutingDecision(
                route=Route.STATIC_FALLBACK,
                text=self.intent_fallback(question),
                source=SOURCE_INTELLIGENT,
                confidence=0.0,
                metadata={
                    "matched_questions": [],
                    "route": Route.STATIC_FALLBACK.value,
                    "intent": rule.name if rule else None,
                    "generation_failed": True,
                },
            )

        return RoutingDecision(
            route=Route.GENERATIVE_UNGUIDED,
            text=text,
            source=SOURCE_GENERATIVE_GENERAL,
            confidence=0.0,
            metadata={"matched_questions": [], "route": Route.GENERATIVE_UNGUIDED.value},
        )

    # ---------------------------------------------------------------- Helpers

    def paraphrase(self, entry: FAQEntry) -> str:
        """Wrap a stored answer in one of the fixed conversational templates."""
        return self.rng.choice(FALLBACK_TEMPLATES).format(answer=entry.answer)

    def _generate(self, prompt: str, max_tokens: int) -> str:
        if self.backend is None:
            raise GenerationError("Generative backend is not configured")

        start = time.time()
        text = self.backend.generate(prompt, max_tokens)
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Generative backend returned no text")
        print(f"[ROUTER] generation ok in {time.time() - start:.2f}s")
        return text.strip()


def _match_metadata(matches) -> Dict[str, Any]:
    return {
        "matched_questions": [m.entry.question for m in matches],
        "scores": [m.score for m in matches],
    }
