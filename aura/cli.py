"""
Aura — Chat REPL

Reads lines from stdin, runs each one through the orchestrator and prints
the reply. The monologue heartbeat runs in the background while the REPL
waits for input.

  exit / quit   leave
  /heartbeat    run one monologue heartbeat now
  /end          close the current session
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog
from dotenv import load_dotenv

from aura.clients.embedding import create_embedding_client
from aura.clients.llm import create_llm_provider
from aura.clients.scheduler import HeartbeatScheduler
from aura.config import load_config
from aura.errors import ProviderConfigurationError
from aura.storage import create_storage
from aura.systems.orchestrator import Orchestrator
from aura.telemetry.logging import setup_logging

logger = structlog.get_logger()

EXIT_COMMANDS = {"exit", "quit"}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="aura", description="Chat with the companion.")
    parser.add_argument(
        "--config",
        default="config/default.yaml",
        help="Path to the YAML config (default: config/default.yaml)",
    )
    parser.add_argument(
        "--conversation",
        default="default",
        help="Conversation id to chat in",
    )
    return parser.parse_args(argv)


async def _repl(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    setup_logging(config.logging, companion_id=config.companion_id)

    try:
        llm = create_llm_provider(config.llm)
    except ProviderConfigurationError as exc:
        print(f"[config error] {exc}", file=sys.stderr)
        return 2

    try:
        llm.check_credentials()
    except ProviderConfigurationError as exc:
        await llm.close()
        print(f"[config error] {exc}", file=sys.stderr)
        return 2

    embedder = create_embedding_client(config.embedding, config.llm)
    storage = create_storage(config.storage)
    orchestrator = Orchestrator(config, llm, storage, embedder=embedder)

    scheduler = HeartbeatScheduler()
    scheduler.register(
        "monologue",
        config.reflection.heartbeat_interval_minutes * 60,
        orchestrator.run_heartbeat,
    )
    await scheduler.start()

    settings = await storage.get_settings()
    name = settings.companion_personality.name
    print(f"{name} is here. Type 'exit' to leave.")

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            text = line.strip()
            if not text:
                continue
            if text.lower() in EXIT_COMMANDS:
                break
            if text == "/heartbeat":
                entry = await orchestrator.run_heartbeat()
                print(f"(thought) {entry.content}" if entry else "(no thought)")
                continue
            if text == "/end":
                await orchestrator.end_session(args.conversation)
                print("(session closed)")
                continue

            try:
                reply = await orchestrator.handle_turn(text, conversation_id=args.conversation)
            except ProviderConfigurationError as exc:
                print(f"[config error] {exc}", file=sys.stderr)
                continue
            print(f"{name}: {reply}")
    finally:
        await scheduler.stop()
        await orchestrator.shutdown()

    return 0


def main(argv: list[str] | None = None) -> None:
    # load_dotenv MUST run before the config reads the environment
    load_dotenv()
    args = _parse_args(argv)
    try:
        code = asyncio.run(_repl(args))
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
