"""Entry point for `python -m digit_setup_assistant` and the `digit-assistant` CLI script."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from digit_setup_assistant import build_orchestrator
from digit_setup_assistant.canonical import render_session
from digit_setup_assistant.models import AssistantReply
from digit_setup_assistant.orchestrator import ConversationOrchestrator
from digit_setup_assistant.settings import CLASSIFIER_BACKENDS, RuntimeSettings

EXIT_WORDS = frozenset({"exit", "quit"})
HELP_TEXT = (
    "Describe what you want to set up, then answer yes or no to the proposed action.\n"
    "  /allowed  list the actions available right now\n"
    "  /state    show the current configuration as JSON\n"
    "  /help     show this message\n"
    "  exit      leave the assistant"
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Conversational DIGIT platform setup assistant")
    parser.add_argument("--session-id", default=None, help="Conversation session key (default from settings)")
    parser.add_argument(
        "--message",
        action="append",
        default=None,
        help="Message to send non-interactively; repeat for several turns",
    )
    parser.add_argument(
        "--classifier",
        default=None,
        choices=sorted(CLASSIFIER_BACKENDS),
        help="Intent classifier backend (overrides DIGIT_ASSISTANT_CLASSIFIER)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser.parse_args()


def render_reply(reply: AssistantReply) -> str:
    lines = [reply.message]
    if reply.legal_actions:
        lines.append(f"available: {', '.join(reply.legal_actions)}")
    return "\n".join(lines)


def run_command(orchestrator: ConversationOrchestrator, session_id: str, text: str) -> str:
    """Handle one line of input: a slash command or a conversation turn."""
    command = text.strip().lower()
    session = orchestrator.get_or_create_session(session_id)
    if command == "/allowed":
        legal = orchestrator.legal_actions(session.state)
        if not legal:
            return "none"
        return "\n".join(f"{name}: {orchestrator.registry.describe(name)}" for name in legal)
    if command == "/state":
        return render_session(session)
    if command == "/help":
        return HELP_TEXT
    return render_reply(orchestrator.handle_message(session_id, text))


def _run_turn(orchestrator: ConversationOrchestrator, session_id: str, text: str) -> bool:
    try:
        print(run_command(orchestrator, session_id, text))
    except Exception as exc:  # noqa: BLE001
        logging.exception("Turn failed: %s", exc)
        print(f"Something went wrong: {exc}", file=sys.stderr)
        return False
    return True


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.classifier is not None:
        os.environ["DIGIT_ASSISTANT_CLASSIFIER"] = args.classifier

    try:
        settings = RuntimeSettings.from_env()
        orchestrator = build_orchestrator(settings)
    except (OSError, ValueError) as exc:
        logging.error("Unable to start the assistant: %s", exc)
        return 1

    session_id = args.session_id or settings.default_session_id

    if args.message:
        failures = 0
        for message in args.message:
            print(f"> {message}")
            if not _run_turn(orchestrator, session_id, message):
                failures += 1
        return 1 if failures else 0

    print(HELP_TEXT)
    while True:
        try:
            line = input("> ")
        except EOFError:
            print()
            return 0
        if not line.strip():
            continue
        if line.strip().lower() in EXIT_WORDS:
            return 0
        _run_turn(orchestrator, session_id, line)


if __name__ == "__main__":
    raise SystemExit(main())
