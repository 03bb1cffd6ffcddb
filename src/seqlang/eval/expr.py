from __future__ import annotations

import math
from typing import List, Tuple, cast

from ..tree import BinaryOp, Expr, Sequence
from ..types import (
    InvalidSequenceBoundsError,
    Scope,
    SeqNumber,
    SeqSequence,
    SeqString,
    SeqValue,
    SeqlangTypeError,
    type_name,
)
from .fanout import Checkpoint, EvalFunc, eval_all, eval_pair


def negate(value: SeqValue) -> SeqValue:
    match value:
        case SeqNumber(value=v):
            return SeqNumber(-v)
        case SeqSequence(elements=elements):
            return SeqSequence([-x for x in elements])
        case SeqString(value=s):
            # never produced by a valid program; kept for type uniformity
            return SeqString(f"-{s}")
    raise SeqlangTypeError(f"Cannot negate {type_name(value)}")


def _ieee_div(a: float, b: float) -> float:
    if b != 0:
        return a / b

    if a == 0 or math.isnan(a):
        return math.nan

    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _odd_integer(x: float) -> bool:
    return x.is_integer() and int(x) % 2 == 1


def _ieee_pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _odd_integer(b) else math.inf
    except ValueError:
        if a == 0 and b < 0:
            return math.copysign(math.inf, a) if _odd_integer(b) else math.inf
        return math.nan


def apply_binary_operator(op: str, lhs: SeqValue, rhs: SeqValue) -> SeqNumber:
    if not (isinstance(lhs, SeqNumber) and isinstance(rhs, SeqNumber)):
        raise SeqlangTypeError(
            f'Operator "{op}" expects numbers, got {type_name(lhs)} and {type_name(rhs)}'
        )

    a, b = lhs.value, rhs.value

    match op:
        case '+':
            return SeqNumber(a + b)
        case '-':
            return SeqNumber(a - b)
        case '*':
            return SeqNumber(a * b)
        case '/':
            return SeqNumber(_ieee_div(a, b))
        case '^':
            return SeqNumber(_ieee_pow(a, b))

    raise SeqlangTypeError(f"Unknown operator {op}")


async def eval_binary(node: BinaryOp, scope: Scope, eval_func: EvalFunc, checkpoint: Checkpoint) -> SeqNumber:
    """Evaluate a chain of binary operations along its left spine.

    `a + b - c * d` nests leftwards, so the spine is walked in a loop and only
    the right operands recurse. Operands are evaluated together, then folded
    left to right.
    """
    checkpoint.check()

    steps: List[Tuple[str, Expr]] = []
    base: Expr = node

    while isinstance(base, BinaryOp):
        steps.append((base.op, base.right))
        base = base.left

    steps.reverse()
    operands = await eval_all([base, *(right for _, right in steps)], scope, eval_func)

    acc = operands[0]
    for (op, _), rhs in zip(steps, operands[1:]):
        acc = apply_binary_operator(op, acc, rhs)

    return cast(SeqNumber, acc)


def materialize_range(start: SeqValue, end: SeqValue) -> SeqSequence:
    if not (isinstance(start, SeqNumber) and isinstance(end, SeqNumber)):
        raise SeqlangTypeError(
            f"Sequence bounds must be numbers, got {type_name(start)} and {type_name(end)}"
        )

    lo, hi = start.value, end.value

    if not (lo.is_integer() and hi.is_integer()):
        raise InvalidSequenceBoundsError(
            f"Sequence {{{lo!r}, {hi!r}}} has non-integer bound(s)", lo, hi
        )

    lo_int, hi_int = int(lo), int(hi)

    if lo_int > hi_int:
        raise InvalidSequenceBoundsError(
            f"Sequence {{{lo_int}, {hi_int}}} has end bound < start bound", lo, hi
        )

    elements: List[float] = [float(i) for i in range(lo_int, hi_int + 1)]
    return SeqSequence(elements)


async def eval_sequence(node: Sequence, scope: Scope, eval_func: EvalFunc, checkpoint: Checkpoint) -> SeqSequence:
    checkpoint.check()
    start, end = await eval_pair(node.start, node.end, scope, eval_func)
    return materialize_range(start, end)
