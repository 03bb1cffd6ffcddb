"""
Token Types for the seqlang parser

Shared between lexer and parser to avoid circular dependencies.
"""

from dataclasses import dataclass
from enum import Enum


class TT(Enum):
    """Token Types - mirrors grammar terminals.

    The enum value is the readable name used in parser diagnostics.
    """

    # Keywords
    VAR = "<var>"
    OUT = "<out>"
    PRINT = "<print>"
    MAP = "<map>"
    REDUCE = "<reduce>"

    # Multi-char operators
    ARROW = '"->"'
    ASSIGN = '"="'

    # Operators
    PLUS = '"+"'
    MINUS = '"-"'
    STAR = '"*"'
    SLASH = '"/"'
    CARET = '"^"'

    # Punctuation
    LPAR = '"("'
    RPAR = '")"'
    LBRACE = '"{"'
    RBRACE = '"}"'
    COMMA = '","'

    # Literals
    NUMBER = "number"
    IDENT = "identifier"
    STRING = "string_literal"

    # Special
    WHITESPACE = "whitespace"
    ERROR = "ERROR"

    @property
    def readable(self) -> str:
        return self.value


@dataclass(frozen=True)
class Tok:
    """Token with its source offset"""

    type: TT
    value: str
    pos: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.pos})"
