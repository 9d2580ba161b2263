from __future__ import annotations

import time
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import ChatbotConfig
from conversation_store import BOT, USER, ConversationStore
from exception_logger import exception_logger
from faq_corpus import load_corpus_or_empty
from llm import GeminiClient
from matcher import Matcher
from response_manager import ResponseRouter

from .heartbeat_manager import HeartbeatManager


class ChatRequest(BaseModel):
    message: Optional[str] = None


class AskRequest(BaseModel):
    question: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def build_router(config: ChatbotConfig) -> ResponseRouter:
    """Wire corpus, matcher and Gemini client from configuration."""
    corpus = load_corpus_or_empty(config.faq_path)
    backend = GeminiClient.from_config(config)
    print(f"[SERVER] Gemini enabled: {backend.enabled}")
    return ResponseRouter(
        matcher=Matcher(corpus),
        backend=backend,
        threshold=config.confidence_threshold,
        context_limit=config.context_limit,
        chat_max_tokens=config.chat_max_tokens,
        ask_max_tokens=config.ask_max_tokens,
        max_prompt_words=config.max_prompt_words,
    )


def create_app(
    config: Optional[ChatbotConfig] = None,
    router: Optional[ResponseRouter] = None,
    store: Optional[ConversationStore] = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Every collaborator can be injected; anything missing is built from the
    environment (a `.env` file is honored).
    """
    if config is None:
        load_dotenv()
        config = ChatbotConfig.from_env()
    exception_logger.set_log_file(config.error_log_path)

    if router is None:
        router = build_router(config)
    if store is None:
        store = ConversationStore(max_turns=config.history_max_turns)
    heartbeat = HeartbeatManager()

    app = FastAPI(title="Campus FAQ Assistant", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = config
    app.state.router = router
    app.state.store = store
    app.state.heartbeat = heartbeat

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        print(f"[SERVER] rejected malformed body on {request.url.path}")
        return _error(400, "Invalid request body")

    @app.get("/")
    def root():
        return {"message": "Chatbot API is running!"}

    @app.get("/health")
    def health():
        backend = router.backend
        return {
            "status": "ok",
            "corpus_size": len(router.matcher.corpus),
            "generative_enabled": bool(backend is not None and getattr(backend, "enabled", True)),
            "stats": heartbeat.snapshot(),
        }

    @app.post("/chat")
    def chat(payload: Optional[ChatRequest] = None):
        message = payload.message if payload else None
        if not message:
            return _error(400, "Message is required")

        try:
            start = time.time()
            store.append(USER, message)
            decision = router.route_message(message)
            store.append(BOT, decision.text)
            heartbeat.record(decision.source, (time.time() - start) * 1000, decision.generation_failed)

            print(f"[CHAT] source={decision.source} confidence={decision.confidence:.2f}")
            history = store.recent(config.history_view_limit)
            return {
                "response": decision.text,
                "history": [turn.to_dict() for turn in history],
                "source": decision.source,
                "metadata": dict(decision.metadata, confidence=decision.confidence),
            }
        except Exception as exc:
            exception_logger.log_exception(exc, "main_server", "Error processing /chat")
            heartbeat.record_error()
            return _error(500, "Internal server error")

    @app.post("/ask")
    def ask(payload: Optional[AskRequest] = None):
        question = payload.question if payload else None
        if not question:
            return _error(400, "Question is required")

        try:
            start = time.time()
            decision = router.route_question(question)
            heartbeat.record(decision.source, (time.time() - start) * 1000, decision.generation_failed)

            print(f"[ASK] source={decision.source} confidence={decision.confidence:.2f}")
            return {
                "answer": decision.text,
                "source": decision.source,
                "confidence": decision.confidence,
            }
        except Exception as exc:
            exception_logger.log_exception(exc, "main_server", "Error processing /ask")
            heartbeat.record_error()
            return _error(500, "Internal server error")

    @app.get("/history")
    def get_history():
        try:
            return {"history": [turn.to_dict() for turn in store.all()]}
        except Exception as exc:
            exception_logger.log_exception(exc, "main_server", "Error reading history")
            return _error(500, "Internal server error")

    @app.delete("/history")
    def clear_history():
        try:
            store.clear()
            return {"message": "Chat history cleared"}
        except Exception as exc:
            exception_logger.log_exception(exc, "main_server", "Error clearing history")
            return _error(500, "Internal server error")

    return app


if __name__ == "__main__":
    import uvicorn

    load_dotenv()
    settings = ChatbotConfig.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, reload=False)
