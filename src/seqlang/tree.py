"""AST node types produced by the parser and walked by the evaluator.

Expressions and statements are closed sets of frozen dataclasses; consumers
dispatch with `match` over the variants. `to_tree` converts a program into a
Lark tree so it can be pretty-printed or compared structurally in tests.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence as Seq, Tuple, Union

from lark import Token, Tree
from typing_extensions import TypeAlias

# ---------------- Expressions ----------------

@dataclass(frozen=True)
class Number:
    value: float

@dataclass(frozen=True)
class Identifier:
    name: str

@dataclass(frozen=True)
class UnaryMinus:
    operand: Expr

@dataclass(frozen=True)
class BinaryOp:
    left: Expr
    op: str
    right: Expr

@dataclass(frozen=True)
class Sequence:
    start: Expr
    end: Expr

@dataclass(frozen=True)
class Map:
    sequence: Expr
    param: str
    body: Expr

@dataclass(frozen=True)
class Reduce:
    sequence: Expr
    neutral: Expr
    param1: str
    param2: str
    body: Expr

Expr: TypeAlias = Union[Number, Identifier, UnaryMinus, BinaryOp, Sequence, Map, Reduce]

# ---------------- Statements ----------------

@dataclass(frozen=True)
class VarDecl:
    name: str
    expr: Expr

@dataclass(frozen=True)
class Out:
    expr: Expr

@dataclass(frozen=True)
class Print:
    text: str

Stmt: TypeAlias = Union[VarDecl, Out, Print]


def format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


def format_expr(expr: Expr) -> str:
    """Render an expression back to (normalized) source text."""
    match expr:
        case Number(value=v):
            return format_number(v)
        case Identifier(name=name):
            return name
        case UnaryMinus(operand=operand):
            inner = format_expr(operand)
            return f"-{inner}" if isinstance(operand, Identifier) else f"-({inner})"
        case BinaryOp():
            return _format_chain(expr)
        case Sequence(start=start, end=end):
            return f"{{{format_expr(start)}, {format_expr(end)}}}"
        case Map(sequence=seq, param=param, body=body):
            return f"map({format_expr(seq)}, {param} -> {format_expr(body)})"
        case Reduce(sequence=seq, neutral=neutral, param1=p1, param2=p2, body=body):
            return f"reduce({format_expr(seq)}, {format_expr(neutral)}, {p1} {p2} -> {format_expr(body)})"
    raise TypeError(f"Unknown expression node {expr!r}")


def _format_operand(expr: Expr) -> str:
    text = format_expr(expr)
    return f"({text})" if isinstance(expr, BinaryOp) else text


def _format_chain(node: BinaryOp) -> str:
    # left spine walked in a loop; long `a + b + ...` chains stay flat
    steps: List[Tuple[str, Expr]] = []
    base: Expr = node

    while isinstance(base, BinaryOp):
        steps.append((base.op, base.right))
        base = base.left

    text = format_expr(base)

    for depth, (op, right) in enumerate(reversed(steps)):
        if depth > 0:
            text = f"({text})"
        text = f"{text} {op} {_format_operand(right)}"

    return text


# ---------------- Lark conversion ----------------

def expr_tree(expr: Expr) -> Tree:
    match expr:
        case Number(value=v):
            return Tree('number', [Token('NUMBER', format_number(v))])
        case Identifier(name=name):
            return Tree('ident', [Token('IDENT', name)])
        case UnaryMinus(operand=operand):
            return Tree('neg', [expr_tree(operand)])
        case BinaryOp(left=left, op=op, right=right):
            return Tree('binop', [expr_tree(left), Token('OP', op), expr_tree(right)])
        case Sequence(start=start, end=end):
            return Tree('sequence', [expr_tree(start), expr_tree(end)])
        case Map(sequence=seq, param=param, body=body):
            return Tree('map', [expr_tree(seq), Token('IDENT', param), expr_tree(body)])
        case Reduce(sequence=seq, neutral=neutral, param1=p1, param2=p2, body=body):
            return Tree('reduce', [
                expr_tree(seq),
                expr_tree(neutral),
                Token('IDENT', p1),
                Token('IDENT', p2),
                expr_tree(body),
            ])
    raise TypeError(f"Unknown expression node {expr!r}")


def stmt_tree(stmt: Stmt) -> Tree:
    match stmt:
        case VarDecl(name=name, expr=expr):
            return Tree('var', [Token('IDENT', name), expr_tree(expr)])
        case Out(expr=expr):
            return Tree('out', [expr_tree(expr)])
        case Print(text=text):
            return Tree('print', [Token('STRING', text)])
    raise TypeError(f"Unknown statement node {stmt!r}")


def to_tree(statements: Seq[Stmt]) -> Tree:
    """Convert a parsed program into a `lark.Tree` rooted at `program`."""
    children: List[Tree] = [stmt_tree(stmt) for stmt in statements]
    return Tree('program', children)
