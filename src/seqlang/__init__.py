"""seqlang: a small expression language over integer sequences.

Pipeline: tokenizer -> recursive-descent parser -> concurrent tree-walking
evaluator, driven by the `Interpreter` run controller which reports
progress as an ordered stream of events.
"""

from .events import Cancelled, Completed, Error, EventStream, InterpreterEvent, Output, Started
from .lexer_rd import tokenize
from .parser_rd import ParseError, parse, parse_source
from .runner import Interpreter, run_once, run_text
from .types import (
    CancelToken,
    InvalidSequenceBoundsError,
    SeqlangError,
    SeqlangSyntaxError,
    SeqlangTypeError,
    UndefinedVariableError,
)

__all__ = [
    "Cancelled",
    "CancelToken",
    "Completed",
    "Error",
    "EventStream",
    "Interpreter",
    "InterpreterEvent",
    "InvalidSequenceBoundsError",
    "Output",
    "ParseError",
    "SeqlangError",
    "SeqlangSyntaxError",
    "SeqlangTypeError",
    "Started",
    "UndefinedVariableError",
    "parse",
    "parse_source",
    "run_once",
    "run_text",
    "tokenize",
]
