"""`map` and `reduce` over materialized integer sequences.

`reduce` picks one of two strategies. The default is a left-to-right fold.
When `is_associative_lambda` flags the lambda, the neutral value is
prepended and the list is reduced as a balanced merge tree with both halves
evaluated concurrently. The flag is purely syntactic: a body that is one
binary operation over the two parameters qualifies whatever the operator, so
`x - y` or `x / y` reduce in merge-tree order and can differ from the fold.
"""
from __future__ import annotations

import logging
from typing import List

from ..tree import BinaryOp, Expr, Identifier, Map, Reduce, format_expr
from ..types import Scope, SeqNumber, SeqSequence, SeqValue, SeqlangTypeError, type_name
from .fanout import Checkpoint, EvalFunc, eval_pair, is_leaf, join_all

logger = logging.getLogger(__name__)

# Element tasks started per gather in `map`.
MAP_BATCH = 1024

# Ranges shorter than this are reduced inline with the same merge tree.
REDUCE_GRAIN = 64


def is_associative_lambda(node: Reduce) -> bool:
    body = node.body

    if not isinstance(body, BinaryOp):
        return False

    if not (isinstance(body.left, Identifier) and isinstance(body.right, Identifier)):
        return False

    operands = {body.left.name, body.right.name}
    return operands == {node.param1, node.param2}


def _lambda_number(body: Expr, result: SeqValue) -> float:
    if not isinstance(result, SeqNumber):
        raise SeqlangTypeError(
            f"Lambda {format_expr(body)} returned non-number value '{result}'"
        )
    return result.value


def _require_sequence(what: str, value: SeqValue) -> SeqSequence:
    if not isinstance(value, SeqSequence):
        raise SeqlangTypeError(f"{what} expects a sequence, got {type_name(value)}")
    return value


# ---------------- map ----------------

async def eval_map(node: Map, scope: Scope, eval_func: EvalFunc, checkpoint: Checkpoint) -> SeqSequence:
    checkpoint.check()
    source = _require_sequence("map", await eval_func(node.sequence, scope))

    def element_scope(element: float) -> Scope:
        return scope.overlay({node.param: SeqNumber(element)})

    results: List[SeqValue] = []

    if is_leaf(node.body):
        for element in source.elements:
            await checkpoint.tick()
            results.append(await eval_func(node.body, element_scope(element)))
    else:
        elements = source.elements
        for offset in range(0, len(elements), MAP_BATCH):
            await checkpoint.tick()
            batch = elements[offset:offset + MAP_BATCH]
            results.extend(
                await join_all(eval_func(node.body, element_scope(e)) for e in batch)
            )

    mapped: List[float] = []

    for result in results:
        value = _lambda_number(node.body, result)
        if not value.is_integer():
            raise SeqlangTypeError(
                f"Lambda {format_expr(node.body)} returned non-integer element "
                f"'{value!r}'; sequences hold integers only"
            )
        mapped.append(value)

    return SeqSequence(mapped)


# ---------------- reduce ----------------

async def _invoke(node: Reduce, scope: Scope, eval_func: EvalFunc, acc: float, element: float) -> float:
    lambda_scope = scope.overlay({
        node.param1: SeqNumber(acc),
        node.param2: SeqNumber(element),
    })
    return _lambda_number(node.body, await eval_func(node.body, lambda_scope))


async def _fold(node: Reduce, scope: Scope, eval_func: EvalFunc, checkpoint: Checkpoint,
                neutral: float, elements: List[float]) -> float:
    acc = neutral

    for element in elements:
        await checkpoint.tick()
        acc = await _invoke(node, scope, eval_func, acc, element)

    return acc


async def _divide_and_conquer(node: Reduce, scope: Scope, eval_func: EvalFunc, checkpoint: Checkpoint,
                              neutral: float, elements: List[float]) -> float:
    values = [neutral, *elements]

    async def reduce_range(lo: int, hi: int) -> float:
        await checkpoint.tick()
        span = hi - lo

        if span == 0:
            return values[lo]

        if span == 1:
            return await _invoke(node, scope, eval_func, values[lo], values[hi])

        mid = lo + span // 2

        if span < REDUCE_GRAIN:
            left = await reduce_range(lo, mid)
            right = await reduce_range(mid + 1, hi)
        else:
            left, right = await join_all([reduce_range(lo, mid), reduce_range(mid + 1, hi)])

        return await _invoke(node, scope, eval_func, left, right)

    return await reduce_range(0, len(values) - 1)


async def eval_reduce(node: Reduce, scope: Scope, eval_func: EvalFunc, checkpoint: Checkpoint) -> SeqNumber:
    checkpoint.check()
    seq_val, neutral_val = await eval_pair(node.sequence, node.neutral, scope, eval_func)

    source = _require_sequence("reduce", seq_val)
    if not isinstance(neutral_val, SeqNumber):
        raise SeqlangTypeError(
            f"reduce neutral element must be a number, got {type_name(neutral_val)}"
        )

    if is_associative_lambda(node):
        logger.debug("reduce over %d elements: divide and conquer (%s)",
                     len(source.elements), format_expr(node.body))
        result = await _divide_and_conquer(node, scope, eval_func, checkpoint,
                                           neutral_val.value, source.elements)
    else:
        logger.debug("reduce over %d elements: sequential fold (%s)",
                     len(source.elements), format_expr(node.body))
        result = await _fold(node, scope, eval_func, checkpoint,
                             neutral_val.value, source.elements)

    return SeqNumber(result)
