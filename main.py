"""
Campus FAQ Assistant - entry point

Runs the HTTP backend, or answers a single question from the command line
using the same routing policy as POST /ask.

Usage:
    python main.py                      # serve on HOST:PORT
    python main.py serve --port 8080
    python main.py ask "where can I study late?" --json
"""

import argparse
import json

from dotenv import load_dotenv

from config import ChatbotConfig


def serve(config: ChatbotConfig, host: str, port: int):
    import uvicorn

    from backend_server.main_server import create_app

    uvicorn.run(create_app(config), host=host, port=port, reload=False)


def ask(config: ChatbotConfig, question: str, as_json: bool):
    from backend_server.main_server import build_router

    decision = build_router(config).route_question(question)
    if as_json:
        print(json.dumps(
            {
                "answer": decision.text,
                "source": decision.source,
                "confidence": decision.confidence,
                "route": decision.route.value,
            },
            ensure_ascii=False,
            indent=2,
        ))
    else:
        print(decision.text)


def main(argv=None):
    load_dotenv()
    config = ChatbotConfig.from_env()

    ap = argparse.ArgumentParser(description="Campus FAQ assistant backend")
    sub = ap.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="Run the HTTP API")
    serve_p.add_argument("--host", default=config.host)
    serve_p.add_argument("--port", type=int, default=config.port)

    ask_p = sub.add_parser("ask", help="Answer one question and exit")
    ask_p.add_argument("question")
    ask_p.add_argument("--json", action="store_true", help="Print the full decision as JSON")

    args = ap.parse_args(argv)
    if args.command == "ask":
        ask(config, args.question, args.json)
    else:
        serve(config, getattr(args, "host", config.host), getattr(args, "port", config.port))


if __name__ == "__main__":
    main()
