# display.py
# All terminal output for the chat client.
#
# This module owns presentation entirely. The controller never formats
# strings — it emits TurnEvents and render_event() turns them into output.
# Swap this file to change the entire UI.
#
# Colour language:
#   cyan    — prompts and routing
#   yellow  — context and credential notices
#   magenta — tool calls and their results
#   green   — final responses
#   red     — errors

import json
from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from tool_chat.models import EventKind, Message, Role, TurnEvent

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def banner(model: str, project_name: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Tool Chat[/bold cyan]\n"
            "[dim]Type a prompt, /help for commands, exit to quit.[/dim]\n\n"
            f"[dim]Model   :[/dim] [white]{model}[/white]\n"
            f"[dim]Project :[/dim] [white]{project_name}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def api_key_notice(env_key: str) -> None:
    console.print(
        Panel(
            "[bold yellow]Remember to enter your OpenAI API key.[/bold yellow]\n"
            f"[dim]Set {env_key} in the environment or .env, or use /key <value>.[/dim]",
            title=_label("API KEY", "yellow"),
            border_style="yellow",
            padding=(0, 2),
        )
    )


def help_text() -> None:
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 1))
    table.add_column("Command", style="bold white")
    table.add_column("Effect", style="dim white")
    table.add_row("/context <text>", "Set the project's default context (before the first prompt)")
    table.add_row("/history", "Show the conversation ledger")
    table.add_row(escape("/new [name]"), "Start a new project and conversation")
    table.add_row("/key <value>", "Store an API key for this process")
    table.add_row("exit", "Quit")
    console.print(table)


def notice(text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


# ---------------------------------------------------------------------------
# Turn events
# ---------------------------------------------------------------------------


def prompt_received(prompt: str) -> None:
    console.print()
    console.print(Rule("[cyan]PROMPT[/cyan]", style="cyan"))
    console.print(f"[white]{escape(prompt)}[/white]")


def context_locked(context: str) -> None:
    shown = escape(_mono(context, 80)) if context else "(empty)"
    console.print(
        _label("CONTEXT", "yellow"),
        f"[yellow] Default context locked:[/yellow] [dim]{shown}[/dim]",
    )


def tools_requested(text: str) -> None:
    console.print(f"[magenta]··· {escape(text)}[/magenta]")


def tool_call(text: str) -> None:
    console.print(f"[magenta]··· {escape(text)}:[/magenta]")


def tool_result(name: str, arguments: dict | None, result: str) -> None:
    console.print(f"    [dim]{escape(name)}({escape(json.dumps(arguments or {}))})[/dim]")
    console.print(f"    [white]{escape(_mono(result, 140))}[/white]")


def final_result(result: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]→ {escape(result)}[/white]",
            title=_label("RESPONSE", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )


def error(text: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(text)}[/bold white]",
            title=_label("ERROR", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def render_event(event: TurnEvent) -> None:
    """Listener for ConversationController: one event, one piece of output."""
    if event.kind is EventKind.PROMPT:
        prompt_received(event.text)
    elif event.kind is EventKind.CONTEXT_LOCKED:
        context_locked(event.text)
    elif event.kind is EventKind.TOOLS_REQUESTED:
        tools_requested(event.text)
    elif event.kind is EventKind.TOOL_CALL:
        tool_call(event.text)
    elif event.kind is EventKind.TOOL_RESULT:
        tool_result(event.function_name or "?", event.arguments, event.text)
    elif event.kind is EventKind.RESPONSE:
        final_result(event.text)
    elif event.kind is EventKind.ERROR:
        error(event.text)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


_ROLE_STYLE = {
    Role.SYSTEM: "yellow",
    Role.USER: "cyan",
    Role.ASSISTANT: "green",
    Role.TOOL: "magenta",
}


def transcript(messages: Sequence[Message]) -> None:
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("#", justify="right", width=4)
    table.add_column("Role", width=10)
    table.add_column("Content", style="white")

    for index, message in enumerate(messages):
        if message.tool_calls:
            body = "calls: " + ", ".join(
                f"{c.function_name}({c.arguments_payload})" for c in message.tool_calls
            )
            if message.content:
                body = f"{message.content}\n{body}"
        elif message.role is Role.TOOL:
            body = f"[{message.tool_name}] {message.content}"
        else:
            body = message.content or ""
        style = _ROLE_STYLE[message.role]
        role = f"[{style}]{message.role.value}[/{style}]"
        table.add_row(str(index), role, escape(_mono(body, 200)))

    console.print(Panel(table, title="[dim]CONVERSATION[/dim]", border_style="dim", padding=(0, 1)))
