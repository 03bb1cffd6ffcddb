from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence as Seq

from .events import InterpreterEvent, Output
from .tree import (
    BinaryOp,
    Expr,
    Identifier,
    Map,
    Number,
    Out,
    Print,
    Reduce,
    Sequence,
    Stmt,
    UnaryMinus,
    VarDecl,
)
from .types import CancelToken, Scope, SeqNumber, SeqValue, SeqlangTypeError

from .eval.combinators import eval_map, eval_reduce
from .eval.expr import eval_binary, eval_sequence, negate
from .eval.fanout import Checkpoint

logger = logging.getLogger(__name__)

EmitFunc = Callable[[InterpreterEvent], Awaitable[None]]


class Evaluator:
    """Tree-walking evaluator for one run.

    Statements execute strictly in order against a single global scope that
    only the statement loop writes. Expressions fan out into asyncio tasks and
    join before returning, and only ever read the scopes they are handed.
    """

    def __init__(self, emit: EmitFunc, cancel_token: Optional[CancelToken] = None):
        self.globals = Scope()
        self.checkpoint = Checkpoint(cancel_token)
        self._emit = emit

    # ---------------- Statements ----------------

    async def evaluate(self, statements: Seq[Stmt]) -> None:
        for stmt in statements:
            await self.checkpoint.tick()
            await self.exec_stmt(stmt)

    async def exec_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case VarDecl(name=name, expr=expr):
                value = await self.eval_node(expr, self.globals)
                self.globals.define(name, value)
            case Out(expr=expr):
                value = await self.eval_node(expr, self.globals)
                await self._emit(Output(str(value)))
            case Print(text=text):
                await self._emit(Output(text))
            case _:
                raise SeqlangTypeError(f"Unsupported statement {stmt!r}")

    # ---------------- Expressions ----------------

    async def eval_node(self, expr: Expr, scope: Scope) -> SeqValue:
        match expr:
            case Number(value=v):
                return SeqNumber(v)
            case Identifier(name=name):
                return scope.get(name)
            case UnaryMinus(operand=operand):
                self.checkpoint.check()
                return negate(await self.eval_node(operand, scope))
            case BinaryOp():
                return await eval_binary(expr, scope, self.eval_node, self.checkpoint)
            case Sequence():
                return await eval_sequence(expr, scope, self.eval_node, self.checkpoint)
            case Map():
                return await eval_map(expr, scope, self.eval_node, self.checkpoint)
            case Reduce():
                return await eval_reduce(expr, scope, self.eval_node, self.checkpoint)

        raise SeqlangTypeError(f"Unsupported expression {expr!r}")
