"""Evaluator helper modules for the seqlang runtime."""

__all__ = [
    "combinators",
    "expr",
    "fanout",
]
