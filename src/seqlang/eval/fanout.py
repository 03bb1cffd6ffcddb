"""Structured fan-out/fan-in for concurrent sub-expression evaluation."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar, cast

from ..tree import Expr, Identifier, Number
from ..types import CancelToken, Scope, SeqValue

EvalFunc = Callable[[Expr, Scope], Awaitable[SeqValue]]

_T = TypeVar("_T")

# How many checkpoints pass between forced yields to the event loop.
YIELD_EVERY = 256


class Checkpoint:
    """Cooperative cancellation point for one run.

    `check` raises RunCancelled once the token is set. `tick` also yields to
    the event loop every YIELD_EVERY calls so a pending Task.cancel() is
    delivered to loops that otherwise never suspend.
    """

    def __init__(self, token: Optional[CancelToken] = None, every: int = YIELD_EVERY):
        self.token = token if token is not None else CancelToken()
        self.every = max(1, every)
        self._count = 0

    def check(self) -> None:
        self.token.check()

    async def tick(self) -> None:
        self.token.check()
        self._count += 1

        if self._count % self.every == 0:
            await asyncio.sleep(0)
            self.token.check()


async def join_all(coros: Iterable[Awaitable[_T]]) -> List[_T]:
    """Run awaitables as sibling tasks and return their results in order.

    If any sibling fails, or the joining task is cancelled, the remaining
    siblings are cancelled and awaited before the exception propagates.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]

    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def is_leaf(expr: Expr) -> bool:
    """Leaves evaluate without suspending, so they never get their own task."""
    return isinstance(expr, (Number, Identifier))


async def eval_all(exprs: Sequence[Expr], scope: Scope, eval_func: EvalFunc) -> List[SeqValue]:
    """Evaluate independent sub-expressions, returning values in order.

    Leaves are evaluated inline first. A single compound expression is
    awaited directly; two or more run as sibling tasks.
    """
    values: List[Optional[SeqValue]] = [None] * len(exprs)
    compound: List[int] = []

    for i, expr in enumerate(exprs):
        if is_leaf(expr):
            values[i] = await eval_func(expr, scope)
        else:
            compound.append(i)

    if len(compound) == 1:
        i = compound[0]
        values[i] = await eval_func(exprs[i], scope)
    elif compound:
        results = await join_all(eval_func(exprs[i], scope) for i in compound)
        for i, value in zip(compound, results):
            values[i] = value

    return cast(List[SeqValue], values)


async def eval_pair(left: Expr, right: Expr, scope: Scope, eval_func: EvalFunc) -> Tuple[SeqValue, SeqValue]:
    """Evaluate two independent sub-expressions, concurrently when both are compound."""
    lhs, rhs = await eval_all([left, right], scope, eval_func)
    return lhs, rhs
