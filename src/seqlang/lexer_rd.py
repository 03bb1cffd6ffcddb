"""
Lexer for seqlang - Recursive Descent Parser

Tokenizes seqlang source code into a list of tokens.

Features:
- Single-pass tokenization over an ordered rule table (first match wins)
- Never fails: unknown characters become one-character ERROR tokens
- Whitespace is matched and discarded
- A `-` directly followed by digits is always a literal sign, so `5-2` lexes
  as the numbers `5` and `-2`
"""

import re
from typing import List, Pattern, Tuple

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================


class Lexer:
    """
    seqlang lexer.

    Keywords are tried before the generic identifier rule so that e.g. `var`
    is never lexed as an identifier; `\\b` keeps `variable` an identifier.
    """

    KEYWORDS = {
        'var': TT.VAR,
        'out': TT.OUT,
        'print': TT.PRINT,
        'map': TT.MAP,
        'reduce': TT.REDUCE,
    }

    # Rule table: order matters.
    RULES: List[Tuple[Pattern[str], TT]] = [
        # Whitespace (never emitted)
        (re.compile(r"[ \t\r\n]+"), TT.WHITESPACE),

        # Keywords
        *[(re.compile(rf"{word}\b"), tt) for word, tt in KEYWORDS.items()],

        # Multi-char operators
        (re.compile(r"->"), TT.ARROW),
        (re.compile(r"="), TT.ASSIGN),

        # Literals and identifiers: decimal form first, then plain digits
        (re.compile(r"-?\d+\.\d*|\d*\.\d+"), TT.NUMBER),
        (re.compile(r"-?\d+"), TT.NUMBER),
        (re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*"), TT.IDENT),
        (re.compile(r'"(?:[^\\"]|\\.)*"'), TT.STRING),

        # Single-character operators
        (re.compile(r"\+"), TT.PLUS),
        (re.compile(r"-"), TT.MINUS),
        (re.compile(r"\*"), TT.STAR),
        (re.compile(r"/"), TT.SLASH),
        (re.compile(r"\^"), TT.CARET),
        (re.compile(r"\("), TT.LPAR),
        (re.compile(r"\)"), TT.RPAR),
        (re.compile(r"\{"), TT.LBRACE),
        (re.compile(r"\}"), TT.RBRACE),
        (re.compile(r","), TT.COMMA),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.tokens: List[Tok] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        return self.tokens

    def scan_token(self):
        """Scan next token"""
        for pattern, token_type in self.RULES:
            m = pattern.match(self.source, self.pos)
            if m is None or not m.group():
                continue

            text = m.group()

            if token_type is not TT.WHITESPACE:
                self.emit(token_type, text)

            self.pos += len(text)
            return

        # Unrecognized input becomes a single-character error token
        self.emit(TT.ERROR, self.source[self.pos])
        self.pos += 1

    # ========================================================================
    # Utilities
    # ========================================================================

    def emit(self, token_type: TT, value: str):
        """Emit a token"""
        self.tokens.append(Tok(type=token_type, value=value, pos=self.pos))


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
