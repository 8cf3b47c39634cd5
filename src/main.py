"""Entry point for the intent chatbot: HTTP service or local chat loop."""

import argparse
import os
from dataclasses import replace

from loguru import logger

from intentbot import IntentBot, LoadError, load_knowledge_base
from intentbot.config import configure_logging, load_settings
from intentbot.errors import ConfigError


def chat(data_path: str) -> None:
    try:
        kb = load_knowledge_base(data_path)
    except LoadError as exc:
        logger.error(f"FATAL: failed to load knowledge base: {exc}")
        raise SystemExit(1) from exc

    bot = IntentBot(kb)
    print("Chatbot ready. Type 'exit' to quit.")
    while True:
        user_input = input("you> ").strip()
        if not user_input or user_input.lower() in {"exit", "quit"}:
            break
        reply = bot.respond(user_input)
        print(f"bot> {reply.reply}  [{reply.intent} {reply.confidence}]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the intent chatbot.")
    parser.add_argument("mode", nargs="?", choices=["serve", "chat"], default="serve")
    parser.add_argument("--config", default=None, help="Optional JSON/YAML config file.")
    parser.add_argument("--data", default=None, help="Path to the knowledge base (XML, JSON or YAML).")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on.")
    args = parser.parse_args()

    if args.mode == "chat":
        configure_logging(os.environ.get("LOG_LEVEL", "WARNING"))
        chat(args.data or os.environ.get("KNOWLEDGE_BASE_PATH", "data.xml"))
        return

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        configure_logging()
        logger.error(f"FATAL: {exc}")
        raise SystemExit(1) from exc

    if args.data:
        settings = replace(settings, knowledge_base_path=args.data)
    if args.port:
        settings = replace(settings, port=args.port)
    configure_logging(settings.log_level)

    from webapi import run

    run(settings)


if __name__ == "__main__":
    main()
