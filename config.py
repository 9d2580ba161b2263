# config.py
from dataclasses import dataclass
import os
from typing import Optional


def _optional_int(raw: Optional[str]) -> Optional[int]:
    raw = (raw or "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class ChatbotConfig:
    # Gemini
    google_api_key: str
    gemini_model: str
    gemini_endpoint: str
    generation_timeout: float
    temperature: float

    # FAQ corpus / routing
    faq_path: str
    confidence_threshold: float
    context_limit: int            # FAQs fed to the /chat prompt

    # Token budgets per endpoint
    chat_max_tokens: int
    ask_max_tokens: int
    max_prompt_words: int

    # History
    history_view_limit: int       # turns echoed back by /chat
    history_max_turns: Optional[int]  # None = unbounded

    error_log_path: str
    host: str
    port: int

    @property
    def generative_enabled(self) -> bool:
        return bool(self.google_api_key)

    @staticmethod
    def from_env() -> "ChatbotConfig":
        return ChatbotConfig(
            google_api_key=(os.getenv("GOOGLE_API_KEY") or "").strip(),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            gemini_endpoint=os.getenv(
                "GEMINI_ENDPOINT",
                "https://generativelanguage.googleapis.com/v1beta/models",
            ),
            generation_timeout=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "5")),
            temperature=float(os.getenv("GEMINI_TEMPERATURE", "0.7")),

            faq_path=os.getenv("FAQ_PATH", os.path.join("data", "faq.json")),
            confidence_threshold=float(os.getenv("FAQ_CONFIDENCE_THRESHOLD", "0.85")),
            context_limit=int(os.getenv("FAQ_CONTEXT_LIMIT", "3")),

            chat_max_tokens=int(os.getenv("CHAT_MAX_TOKENS", "400")),
            ask_max_tokens=int(os.getenv("ASK_MAX_TOKENS", "512")),
            max_prompt_words=int(os.getenv("MAX_PROMPT_WORDS", "700")),

            history_view_limit=int(os.getenv("HISTORY_VIEW_LIMIT", "10")),
            history_max_turns=_optional_int(os.getenv("HISTORY_MAX_TURNS")),

            error_log_path=os.getenv("CHATBOT_ERROR_LOG", ""),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
        )
