from __future__ import annotations

import asyncio
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Coroutine, List, Optional, TypeVar

from .events import (
    Cancelled,
    Completed,
    Error,
    EventStream,
    InterpreterEvent,
    Output,
    Started,
)
from .evaluator import Evaluator
from .lexer_rd import tokenize
from .parser_rd import parse
from .tree import to_tree
from .types import CancelToken, RunCancelled
from .utils import configure_logging, debug_py_trace_enabled

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Interpreter:
    """Run controller: one `interpret` call is one interpretation attempt.

    Every attempt emits `Started` first and exactly one terminal event
    (`Completed` or `Cancelled`) last. Failures become a single `Error`
    event followed by `Completed`. The caller must cancel and await a
    previous attempt before starting the next one on the same instance.
    """

    def __init__(self, replay: Optional[int] = None):
        self.events = EventStream(replay)

    async def _emit(self, event: InterpreterEvent) -> None:
        await self.events.emit(event)

    async def _emit_final(self, *events: InterpreterEvent) -> None:
        # shielded so a cancellation cannot drop the terminal event
        async def emit_all() -> None:
            for event in events:
                await self._emit(event)

        await asyncio.shield(emit_all())

    async def interpret(self, source: str, cancel_token: Optional[CancelToken] = None) -> None:
        await self._emit(Started())
        logger.debug("run started (%d chars)", len(source))

        try:
            tokens = tokenize(source)
            statements = parse(tokens)
            logger.debug("parsed %d statement(s)", len(statements))
            await Evaluator(self._emit, cancel_token).evaluate(statements)
        except RunCancelled:
            logger.debug("run cancelled by token")
            await self._emit_final(Cancelled())
            return
        except asyncio.CancelledError:
            logger.debug("run task cancelled")
            await self._emit_final(Cancelled())
            raise
        except Exception as exc:
            logger.debug("run failed: %s", _error_message(exc))
            if debug_py_trace_enabled():
                traceback.print_exception(exc, file=sys.stderr)
            await self._emit_final(Error(_error_message(exc)), Completed())
            return

        logger.debug("run completed")
        await self._emit(Completed())


def _run_asyncio(coro: Coroutine[Any, Any, _T]) -> _T:
    try:
        asyncio.get_running_loop()
    except RuntimeError: # no active event loop, ok to run
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError("run_once cannot run inside an active event loop; await Interpreter.interpret instead")


def run_once(source: str, cancel_token: Optional[CancelToken] = None) -> List[InterpreterEvent]:
    """Run one attempt synchronously and return its complete event list."""

    async def _run() -> List[InterpreterEvent]:
        interpreter = Interpreter(replay=0)
        sub = interpreter.events.subscribe(replay=False)
        try:
            await interpreter.interpret(source, cancel_token)
        finally:
            sub.close()
        return sub.drain()

    return _run_asyncio(_run())


def run_text(source: str) -> List[str]:
    """Messages of the Output and Error events of one run, in order."""
    messages: List[str] = []

    for event in run_once(source):
        match event:
            case Output(message=msg) | Error(message=msg):
                messages.append(msg)

    return messages


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    try:
        is_file = candidate.is_file()
    except (OSError, ValueError): # source text too long or odd to be a path
        is_file = False

    if is_file:
        return candidate.read_text(encoding="utf-8")

    return arg


def print_events(events: List[InterpreterEvent]) -> bool:
    """Write Output to stdout and Error to stderr; True if any Error was seen."""
    failed = False

    for event in events:
        match event:
            case Output(message=msg):
                print(msg)
            case Error(message=msg):
                print(f"Error: {msg}", file=sys.stderr)
                failed = True
            case Cancelled():
                print("Cancelled", file=sys.stderr)

    return failed


def main() -> None:
    configure_logging()

    dump_tokens = False
    dump_ast = False
    arg = None

    for token in sys.argv[1:]:
        if token == "--tokens":
            dump_tokens = True
            continue

        if token == "--ast":
            dump_ast = True
            continue

        if token == "--repl":
            from .repl import repl
            repl()
            return

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    source = _load_source(arg or "-")

    if dump_tokens:
        for tok in tokenize(source):
            print(tok)

    if dump_ast:
        from .parser_rd import ParseError
        try:
            print(to_tree(parse(tokenize(source))).pretty(), end="")
        except ParseError as exc:
            raise SystemExit(f"Error: {exc}") from None

    if dump_tokens or dump_ast:
        return

    try:
        events = run_once(source)
    except KeyboardInterrupt:
        raise SystemExit(130) from None

    if print_events(events):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
