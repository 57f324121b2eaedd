# run.py
# Entry point. Config and wiring only — the REPL hands every prompt to the
# Session and lets display.py render the resulting events.

import argparse
import logging
import sys

from rich.logging import RichHandler

from tool_chat import config, display
from tool_chat.session import Session
from tool_chat.simulation import SceneSimulation

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = (
    "You are a helpful assistant controlling a 3D scene. "
    "Use the available tools to inspect or change the scene."
)


def _init_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(name)s | %(message)s",
        handlers=[RichHandler(console=display.console, show_path=False)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chat with a hosted model that can call local tools"
    )
    parser.add_argument(
        "--model", default=config.DEFAULT_MODEL, help="Model id (default: %(default)s)"
    )
    parser.add_argument(
        "--context", default=DEFAULT_CONTEXT, help="Default context for the first turn"
    )
    parser.add_argument(
        "--max-tool-rounds",
        type=int,
        default=config.MAX_TOOL_ROUNDS,
        help="Tool-call rounds allowed per prompt (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=config.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    return parser


def handle_command(session: Session, line: str, default_context: str = DEFAULT_CONTEXT) -> None:
    """Apply one slash command to *session*."""
    command, _, argument = line.partition(" ")
    argument = argument.strip()

    if command == "/help":
        display.help_text()
    elif command == "/history":
        display.transcript(session.conversation.messages)
    elif command == "/context":
        if session.context_locked:
            display.notice("Context is locked for this conversation. Use /new to start over.")
        else:
            session.project.default_context = argument
            display.notice("Default context updated.")
    elif command == "/new":
        project = session.new_project(argument or "Untitled", SceneSimulation())
        session.project.default_context = default_context
        display.notice(f"Started project '{project.name}'.")
    elif command == "/key":
        session.gate.set_credential(argument)
        if session.gate.needs_notice:
            display.api_key_notice(config.API_KEY_ENV)
        else:
            display.notice("API key stored.")
    else:
        display.notice(f"Unknown command {command}. Try /help.")


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv if argv is not None else sys.argv[1:])
    _init_logging(args.log_level)

    session = Session(
        provider=SceneSimulation(),
        model=args.model,
        max_tool_rounds=args.max_tool_rounds,
        listener=display.render_event,
    )
    session.project.default_context = args.context

    display.banner(args.model, session.project.name)
    if session.gate.needs_notice:
        display.api_key_notice(config.API_KEY_ENV)

    while True:
        try:
            line = display.console.input("[bold cyan]> [/bold cyan]").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not line:
            continue
        if line.lower() in {"exit", "quit"}:
            break
        if line.startswith("/"):
            handle_command(session, line, args.context)
            continue
        session.submit(line)

    logger.debug("Exiting after %d ledger entries", len(session.conversation.messages))


if __name__ == "__main__":
    main()
