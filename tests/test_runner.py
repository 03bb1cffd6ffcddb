from __future__ import annotations

import asyncio
import io
import logging
import sys

import pytest

from tests.support.harness import (
    Cancelled,
    Completed,
    Error,
    Interpreter,
    Output,
    Started,
    run_once,
)
from seqlang import runner
from seqlang.events import EventStream, is_terminal
from seqlang.utils import DEFAULT_REPLAY, debug_py_trace_enabled, default_replay_size, log_level_from_env


def _run_main(monkeypatch: pytest.MonkeyPatch, *args: str) -> None:
    monkeypatch.setattr(sys, "argv", ["seqlang", *args])
    runner.main()


# ---------------- event stream ----------------

def test_late_subscriber_receives_replay() -> None:
    interpreter = Interpreter()
    asyncio.run(interpreter.interpret("out 1\nout 2"))

    sub = interpreter.events.subscribe()
    assert sub.drain() == [Started(), Output("1.0"), Output("2.0"), Completed()]


def test_subscriber_without_replay_sees_nothing_old() -> None:
    interpreter = Interpreter()
    asyncio.run(interpreter.interpret("out 1"))

    assert interpreter.events.subscribe(replay=False).drain() == []


def test_replay_is_bounded() -> None:
    interpreter = Interpreter(replay=2)
    asyncio.run(interpreter.interpret("out 1\nout 2\nout 3"))

    assert interpreter.events.replay_snapshot() == [Output("3.0"), Completed()]


def test_replay_size_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    assert default_replay_size() == DEFAULT_REPLAY

    monkeypatch.setenv("SEQLANG_REPLAY", "3")
    assert default_replay_size() == 3

    monkeypatch.setenv("SEQLANG_REPLAY", "lots")
    assert default_replay_size() == DEFAULT_REPLAY


def test_every_subscriber_sees_the_same_order() -> None:
    async def scenario():
        stream = EventStream(replay=0)
        first = stream.subscribe()
        second = stream.subscribe()

        for event in (Started(), Output("a"), Output("b"), Completed()):
            await stream.emit(event)
        stream.close()

        return [e async for e in first], [e async for e in second]

    first, second = asyncio.run(scenario())
    assert first == second == [Started(), Output("a"), Output("b"), Completed()]


def test_emit_after_close_is_rejected() -> None:
    async def scenario():
        stream = EventStream()
        stream.close()
        await stream.emit(Started())

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())


def test_subscribing_to_closed_stream_ends_iteration() -> None:
    async def scenario():
        stream = EventStream()
        await stream.emit(Started())
        stream.close()
        return [e async for e in stream.subscribe()]

    assert asyncio.run(scenario()) == [Started()]


def test_is_terminal() -> None:
    assert is_terminal(Completed())
    assert is_terminal(Cancelled())
    assert not is_terminal(Started())
    assert not is_terminal(Output("x"))
    assert not is_terminal(Error("x"))


def test_run_once_refuses_running_loop() -> None:
    async def scenario():
        run_once("out 1")

    with pytest.raises(RuntimeError, match="active event loop"):
        asyncio.run(scenario())


# ---------------- CLI ----------------

def test_main_runs_literal_source(monkeypatch, capsys) -> None:
    _run_main(monkeypatch, "out 1 + 1")
    assert capsys.readouterr().out == "2.0\n"


def test_main_reads_file(monkeypatch, capsys, tmp_path) -> None:
    path = tmp_path / "prog.seq"
    path.write_text('print "sum"\nout reduce({1, 4}, 0, x y -> x + y)\n', encoding="utf-8")

    _run_main(monkeypatch, str(path))
    assert capsys.readouterr().out == "sum\n10.0\n"


def test_main_reads_stdin(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO("out {1, 2}\n"))

    _run_main(monkeypatch)
    assert capsys.readouterr().out == "[1.0, 2.0]\n"


def test_main_empty_stdin_exits(monkeypatch) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))

    with pytest.raises(SystemExit):
        _run_main(monkeypatch, "-")


def test_main_reports_errors(monkeypatch, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run_main(monkeypatch, "out 3\nout q")

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == "3.0\n"
    assert "Error: Variable q not found" in captured.err


def test_main_dumps_tokens(monkeypatch, capsys) -> None:
    _run_main(monkeypatch, "--tokens", "out x")
    assert capsys.readouterr().out.splitlines() == [
        "Tok(OUT, 'out', 0)",
        "Tok(IDENT, 'x', 4)",
    ]


def test_main_dumps_tree(monkeypatch, capsys) -> None:
    _run_main(monkeypatch, "--ast", "out 1 + x")
    out = capsys.readouterr().out

    assert out.startswith("program")
    assert "binop" in out
    assert "ident" in out


def test_main_tree_dump_reports_syntax_error(monkeypatch) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run_main(monkeypatch, "--ast", "val x = 1")

    assert "Did you mean" in str(excinfo.value.code)


def test_main_rejects_extra_arguments(monkeypatch) -> None:
    with pytest.raises(SystemExit, match="Unexpected argument"):
        _run_main(monkeypatch, "out 1", "out 2")


def test_print_events_flags_failures(capsys) -> None:
    failed = runner.print_events([Started(), Output("x"), Cancelled()])
    assert not failed
    captured = capsys.readouterr()
    assert captured.out == "x\n"
    assert captured.err == "Cancelled\n"


# ---------------- configuration ----------------

def test_log_level_from_env(monkeypatch) -> None:
    assert log_level_from_env() == logging.WARNING

    monkeypatch.setenv("SEQLANG_LOG_LEVEL", "debug")
    assert log_level_from_env() == logging.DEBUG

    monkeypatch.setenv("SEQLANG_LOG_LEVEL", "15")
    assert log_level_from_env() == 15

    monkeypatch.setenv("SEQLANG_LOG_LEVEL", "chatty")
    assert log_level_from_env() == logging.WARNING


def test_debug_trace_flag(monkeypatch) -> None:
    assert not debug_py_trace_enabled()

    monkeypatch.setenv("SEQLANG_DEBUG_PY_TRACE", "yes")
    assert debug_py_trace_enabled()


def test_reduce_strategy_is_logged(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="seqlang"):
        run_once("out reduce({1, 3}, 0, x y -> x + y)\nout reduce({1, 3}, 0, x y -> x + y * 1)")

    messages = [r.getMessage() for r in caplog.records]
    assert any("divide and conquer" in m for m in messages)
    assert any("sequential fold" in m for m in messages)
