"""Interactive editor for seqlang, powered by prompt_toolkit.

Each submission is a complete program, run from a fresh global scope.
"""

from __future__ import annotations

import asyncio
import os
import re
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .events import Cancelled, Error, EventSubscription, Output
from .lexer_rd import tokenize
from .parser_rd import ParseError, parse
from .repl_highlight import SeqlangLexer
from .runner import Interpreter
from .tree import to_tree
from .utils import configure_logging, debug_py_trace_enabled

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/tokens": ("Toggle printing the token list before each run", "[on|off]"),
    "/ast": ("Toggle printing the parse tree before each run", "[on|off]"),
}

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _toggle(current: bool, arg: str) -> bool | None:
    arg = arg.lower()
    if arg in _ON:
        return True
    if arg in _OFF:
        return False
    if arg == "":
        return not current
    return None


def _handle_slash(line: str, dumps: dict[str, bool]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        state = _toggle(debug_py_trace_enabled(), arg)
        if state is None:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        if state:
            os.environ["SEQLANG_DEBUG_PY_TRACE"] = "1"
        else:
            os.environ.pop("SEQLANG_DEBUG_PY_TRACE", None)

        print(f"Python traceback: {'on' if state else 'off'}")
        return True

    if cmd in ("/tokens", "/ast"):
        key = cmd[1:]
        state = _toggle(dumps[key], arg)
        if state is None:
            print(f"Usage: {cmd} [on|off]", file=sys.stderr)
            return True

        dumps[key] = state
        print(f"{key}: {'on' if state else 'off'}")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


async def _print_events(sub: EventSubscription) -> None:
    async for event in sub:
        match event:
            case Output(message=msg):
                print(msg)
            case Error(message=msg):
                print(f"Error: {msg}", file=sys.stderr)
            case Cancelled():
                print("Cancelled", file=sys.stderr)


def run_program(text: str) -> None:
    """Run one program, streaming its events to the terminal; Ctrl-C cancels."""

    async def _run() -> None:
        interpreter = Interpreter(replay=0)
        sub = interpreter.events.subscribe(replay=False)
        printer = asyncio.create_task(_print_events(sub))

        try:
            await interpreter.interpret(text)
        finally:
            sub.close()
            await printer

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        # interpret() already reported Cancelled
        pass


def _dump(text: str, dumps: dict[str, bool]) -> None:
    if dumps["tokens"]:
        for tok in tokenize(text):
            print(tok)

    if dumps["ast"]:
        try:
            print(to_tree(parse(tokenize(text))).pretty(), end="")
        except ParseError:
            # the run reports the syntax error
            pass


def repl() -> None:
    """Interactive read-run loop with prompt_toolkit."""
    configure_logging()
    dumps = {"tokens": False, "ast": False}

    history = InMemoryHistory()
    lexer = SeqlangLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        # Slash commands submit right away.
        if text.startswith("/") and "\n" not in text:
            buf.validate_and_handle()
            return

        # An empty last line submits the program.
        lines = text.split("\n")
        if lines[-1].strip() == "":
            buf.text = "\n".join(lines[:-1])
            buf.cursor_position = len(buf.text)
            buf.validate_and_handle()
            return

        buf.insert_text("\n")

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("seqlang: empty line runs the program, Ctrl-C cancels a run, Ctrl-D exits")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if _handle_slash(text, dumps):
            continue

        _dump(text, dumps)
        run_program(text)
