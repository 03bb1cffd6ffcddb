"""
Recursive Descent Parser for seqlang

Structure:
- Lexer: token list from source (see lexer_rd)
- Parser: recursive descent with one token of lookahead
- AST: frozen dataclass nodes from `tree`

All syntax validation happens here; no semantic checks.
"""

from typing import List, Optional

from .lexer_rd import tokenize
from .token_types import TT, Tok
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
from .types import SeqlangSyntaxError

# ============================================================================
# Parser
# ============================================================================

ParseError = SeqlangSyntaxError

# Parenthesized groups, combinator arguments and `^` chains each add a level.
MAX_NESTING = 64


class Parser:
    """
    Recursive descent parser for seqlang.

    Expression precedence (lowest to highest):
    1. add (+, -)        left-associative
    2. mul (*, /)        left-associative
    3. pow (^)           right-associative
    4. primary (unary minus, literals, identifiers, parens, {a, b}, map, reduce)
    """

    ADD_OPS = (TT.PLUS, TT.MINUS)
    MUL_OPS = (TT.STAR, TT.SLASH)

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self) -> Optional[Tok]:
        """Look at the current token, None at end of input"""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def consume(self) -> Tok:
        """Consume current token and move to next"""
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def check(self, *types: TT) -> bool:
        tok = self.peek()
        return tok is not None and tok.type in types

    def expect(self, token_type: TT) -> Tok:
        """Consume token of expected type or raise error"""
        tok = self.peek()
        if tok is None:
            raise ParseError(f"Expected {token_type.readable}, but reached end of input")
        if tok.type is not token_type:
            raise ParseError(f"Expected {token_type.readable} but found {_describe(tok)}")
        return self.consume()

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> List[Stmt]:
        """Parse entire program"""
        statements: List[Stmt] = []

        while self.peek() is not None:
            statements.append(self.parse_statement())

        return statements

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Stmt:
        tok = self.peek()
        if tok is None:
            raise ParseError("Unexpected end of input")

        match tok.type:
            case TT.VAR:
                self.consume()
                name = self.expect(TT.IDENT).value
                self.expect(TT.ASSIGN)
                return VarDecl(name, self.parse_add())

            case TT.OUT:
                self.consume()
                return Out(self.parse_add())

            case TT.PRINT:
                self.consume()
                text = self.expect(TT.STRING).value
                return Print(text[1:-1])

            case _:
                message = f'Expected statement, found {tok.type.readable} "{tok.value}"'
                # `val` is the usual typo for `var`
                if tok.type is TT.IDENT and tok.value == 'val':
                    message += '. Did you mean "var"?'
                raise ParseError(message)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_add(self) -> Expr:
        self.enter_nested()
        try:
            node = self.parse_mul()

            while self.check(*self.ADD_OPS):
                op = self.consume().value
                node = BinaryOp(node, op, self.parse_mul())

            return node
        finally:
            self.depth -= 1

    def parse_mul(self) -> Expr:
        node = self.parse_pow()

        while self.check(*self.MUL_OPS):
            op = self.consume().value
            node = BinaryOp(node, op, self.parse_pow())

        return node

    def parse_pow(self) -> Expr:
        node = self.parse_primary()

        if self.check(TT.CARET):
            op = self.consume().value
            # a^b^c = a^(b^c)
            self.enter_nested()
            try:
                node = BinaryOp(node, op, self.parse_pow())
            finally:
                self.depth -= 1

        return node

    def enter_nested(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise ParseError(f"Expression nested too deeply (more than {MAX_NESTING} levels)")

    def parse_primary(self) -> Expr:
        tok = self.peek()
        if tok is None:
            raise ParseError("Unexpected end of expression")

        match tok.type:
            case TT.MINUS:
                self.consume()
                return self.parse_negated()
            case TT.NUMBER:
                return Number(float(self.consume().value))
            case TT.IDENT:
                return Identifier(self.consume().value)
            case TT.LPAR:
                return self.parse_group()
            case TT.LBRACE:
                return self.parse_sequence()
            case TT.MAP:
                return self.parse_map()
            case TT.REDUCE:
                return self.parse_reduce()
            case TT.ERROR:
                raise ParseError(f"Unexpected character '{tok.value}'")
            case _:
                raise ParseError(f"Unexpected token {tok.type.readable} in expression")

    def parse_negated(self) -> Expr:
        """Operand of a unary minus; a number literal absorbs the sign."""
        tok = self.peek()

        if tok is not None:
            match tok.type:
                case TT.IDENT:
                    return UnaryMinus(Identifier(self.consume().value))
                case TT.LPAR:
                    return UnaryMinus(self.parse_group())
                case TT.NUMBER:
                    return Number(-float(self.consume().value))

        raise ParseError(f"Unexpected token {TT.MINUS.readable} in expression")

    def parse_group(self) -> Expr:
        self.expect(TT.LPAR)
        expr = self.parse_add()
        self.expect(TT.RPAR)
        return expr

    def parse_sequence(self) -> Sequence:
        self.expect(TT.LBRACE)
        start = self.parse_add()
        self.expect(TT.COMMA)
        end = self.parse_add()
        self.expect(TT.RBRACE)
        return Sequence(start, end)

    def parse_map(self) -> Map:
        self.expect(TT.MAP)
        self.expect(TT.LPAR)
        sequence = self.parse_add()
        self.expect(TT.COMMA)
        param = self.expect(TT.IDENT).value
        self.expect(TT.ARROW)
        body = self.parse_add()
        self.expect(TT.RPAR)
        return Map(sequence, param, body)

    def parse_reduce(self) -> Reduce:
        self.expect(TT.REDUCE)
        self.expect(TT.LPAR)
        sequence = self.parse_add()
        self.expect(TT.COMMA)
        neutral = self.parse_add()
        self.expect(TT.COMMA)
        param1 = self.expect(TT.IDENT).value
        param2 = self.expect(TT.IDENT).value
        self.expect(TT.ARROW)
        body = self.parse_add()
        self.expect(TT.RPAR)
        return Reduce(sequence, neutral, param1, param2, body)


def _describe(tok: Tok) -> str:
    if tok.type is TT.ERROR:
        return f"unexpected character '{tok.value}'"
    return tok.type.readable


# ============================================================================
# Public API
# ============================================================================

def parse(tokens: List[Tok]) -> List[Stmt]:
    """Parse a token list into statements"""
    return Parser(tokens).parse()


def parse_source(source: str) -> List[Stmt]:
    """Tokenize and parse source code"""
    return parse(tokenize(source))
