"""
Expression model, lexer and recursive-descent parser.

Parses the argument text of outputs and tags into an expression tree.

Grammar (precedence from low to high):
expression  → logical
logical     → comparison (("and" | "or") comparison)*
comparison  → filtered (COMPARE_OP filtered)?
filtered    → primary ("|" IDENT (":" argument ("," argument)*)?)*
argument    → IDENT ":" primary | primary
primary     → literal | range | path
range       → "(" primary ".." primary ")"
path        → IDENT ("." IDENT | "." INTEGER | "[" expression "]")*

`and` and `or` share one precedence level and associate to the left:
`a or b and c` is `(a or b) and c`.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple, Union

from .errors import TemplateSyntaxError
from .values import (
    FALSE,
    NIL,
    TRUE,
    DecimalValue,
    IntegerValue,
    RangeValue,
    StringValue,
    Value,
)


# Expression model

class ExprType(Enum):
    """Expression node types."""
    LITERAL = "literal"
    PATH = "path"
    RANGE = "range"
    FILTERED = "filtered"
    BINARY = "binary"


class Expr(ABC):
    """Base class of all expression nodes."""

    @abstractmethod
    def get_type(self) -> ExprType:
        """Returns the node type."""

    def __str__(self) -> str:
        return self._to_string()

    @abstractmethod
    def _to_string(self) -> str:
        """Source-like representation of the expression."""


@dataclass(frozen=True)
class Literal(Expr):
    value: Value

    def get_type(self) -> ExprType:
        return ExprType.LITERAL

    def _to_string(self) -> str:
        if isinstance(self.value, StringValue):
            return repr(self.value.value)
        if self.value is NIL:
            return "nil"
        return self.value.to_display_string()


@dataclass(frozen=True)
class FieldAccessor:
    """`.name` or `["name"]`"""
    name: str

    def __str__(self) -> str:
        return f".{self.name}"


@dataclass(frozen=True)
class IndexAccessor:
    """`[0]` with an integer literal"""
    index: int

    def __str__(self) -> str:
        return f"[{self.index}]"


@dataclass(frozen=True)
class ExprAccessor:
    """`[expr]`: the key is computed at render time."""
    expr: Expr

    def __str__(self) -> str:
        return f"[{self.expr}]"


Accessor = Union[FieldAccessor, IndexAccessor, ExprAccessor]


@dataclass(frozen=True)
class Path(Expr):
    """Variable lookup: root identifier followed by accessors."""
    root: str
    accessors: Tuple[Accessor, ...] = ()

    def get_type(self) -> ExprType:
        return ExprType.PATH

    def _to_string(self) -> str:
        return self.root + "".join(str(accessor) for accessor in self.accessors)


@dataclass(frozen=True)
class RangeExpr(Expr):
    """Range with at least one computed bound: `(1..n)`."""
    start: Expr
    stop: Expr

    def get_type(self) -> ExprType:
        return ExprType.RANGE

    def _to_string(self) -> str:
        return f"({self.start}..{self.stop})"


@dataclass(frozen=True)
class FilterCall:
    name: str
    args: Tuple[Expr, ...] = ()
    kwargs: Tuple[Tuple[str, Expr], ...] = ()

    def __str__(self) -> str:
        parts = [str(arg) for arg in self.args]
        parts.extend(f"{key}: {value}" for key, value in self.kwargs)
        if not parts:
            return self.name
        return f"{self.name}: {', '.join(parts)}"


@dataclass(frozen=True)
class Filtered(Expr):
    """Base expression piped through filters, applied left to right."""
    base: Expr
    chain: Tuple[FilterCall, ...]

    def get_type(self) -> ExprType:
        return ExprType.FILTERED

    def _to_string(self) -> str:
        return " | ".join([str(self.base)] + [str(call) for call in self.chain])


@dataclass(frozen=True)
class Binary(Expr):
    """Binary operator application; `op` is the operator registry key."""
    op: str
    lhs: Expr
    rhs: Expr

    def get_type(self) -> ExprType:
        return ExprType.BINARY

    def _to_string(self) -> str:
        return f"({self.lhs} {self.op} {self.rhs})"


# Lexer

@dataclass(frozen=True)
class ExprToken:
    """
    Expression token.

    Attributes:
        type: STRING, INTEGER, DECIMAL, IDENTIFIER, KEYWORD, OPERATOR, SYMBOL or EOF
        value: Token text (strings without their quotes)
        position: Offset in the expression source
    """
    type: str
    value: str
    position: int

    def __repr__(self):
        return f"ExprToken({self.type}, '{self.value}', pos={self.position})"


class ExpressionLexer:
    """
    Splits expression source into tokens.

    Supported tokens:
    - STRING: single- or double-quoted
    - INTEGER / DECIMAL: optionally negative
    - IDENTIFIER: variable, filter and parameter names (hyphens and a trailing '?' allowed)
    - KEYWORD: and, or, contains, true, false, nil, null
    - OPERATOR: == != <> >= <= > <
    - SYMBOL: | : , . .. [ ] ( )
    """

    # (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        (r'\s+', 'WHITESPACE', True),
        (r'"[^"]*"|\'[^\']*\'', 'STRING', False),
        (r'-?\d+\.\d+', 'DECIMAL', False),
        (r'-?\d+', 'INTEGER', False),
        (r'==|!=|<>|>=|<=|>|<', 'OPERATOR', False),
        (r'\.\.', 'SYMBOL', False),
        (r'[|:,.\[\]()]', 'SYMBOL', False),
        (r'[A-Za-z_][\w-]*\??', 'IDENTIFIER', False),
        (r'.', 'UNKNOWN', False),
    ]

    KEYWORDS = {'and', 'or', 'contains', 'true', 'false', 'nil', 'null'}

    _compiled_patterns = [
        (re.compile(pattern), token_type, ignore)
        for pattern, token_type, ignore in TOKEN_SPECS
    ]

    def tokenize(self, text: str) -> List[ExprToken]:
        """
        Splits a string into tokens.

        Returns:
            List of tokens ending with EOF

        Raises:
            TemplateSyntaxError: On an unexpected character or unterminated string
        """
        tokens: List[ExprToken] = []
        position = 0

        while position < len(text):
            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue

                value = match.group(0)
                if not ignore:
                    if token_type == 'UNKNOWN':
                        if value in ('"', "'"):
                            raise TemplateSyntaxError(
                                f"Unterminated string in expression '{text}'"
                            )
                        raise TemplateSyntaxError(
                            f"Unexpected character '{value}' in expression '{text}'"
                        )

                    final_type = token_type
                    if token_type == 'STRING':
                        value = value[1:-1]
                    elif token_type == 'IDENTIFIER' and value in self.KEYWORDS:
                        final_type = 'KEYWORD'

                    tokens.append(ExprToken(type=final_type, value=value, position=position))

                position = match.end()
                break

        tokens.append(ExprToken(type='EOF', value='', position=position))
        return tokens


# Parser

COMPARISON_OPERATORS = frozenset({'==', '!=', '<>', '>', '<', '>=', '<=', 'contains'})
LOGICAL_OPERATORS = frozenset({'and', 'or'})

_KEYWORD_LITERALS = {
    'true': TRUE,
    'false': FALSE,
    'nil': NIL,
    'null': NIL,
}


class ExpressionParser:
    """
    Recursive-descent expression parser.

    Besides `parse()` for whole expressions, the public token helpers
    (`match_keyword`, `match_symbol`, `identifier`, `primary`, …) let tag
    definitions parse their own argument syntax on the same token stream.
    """

    def __init__(self, source: str):
        self.source = source
        self._tokens = ExpressionLexer().tokenize(source)
        self._position = 0

    def parse(self) -> Expr:
        """
        Parses the whole source as one expression.

        Raises:
            TemplateSyntaxError: On any syntax error
        """
        if self.at_end():
            raise self.error("Empty expression")
        result = self.expression()
        self.expect_end()
        return result

    # Grammar rules

    def expression(self) -> Expr:
        return self._parse_logical()

    def _parse_logical(self) -> Expr:
        left = self._parse_comparison()

        while self.peek().type == 'KEYWORD' and self.peek().value in LOGICAL_OPERATORS:
            op = self._advance().value
            right = self._parse_comparison()
            left = Binary(op, left, right)

        return left

    def _parse_comparison(self) -> Expr:
        left = self.filtered()

        token = self.peek()
        if token.value in COMPARISON_OPERATORS and token.type in ('OPERATOR', 'KEYWORD'):
            self._advance()
            right = self.filtered()
            return Binary(token.value, left, right)

        return left

    def filtered(self) -> Expr:
        """Primary expression followed by an optional filter chain."""
        base = self.primary()
        chain = self.filter_chain()
        if chain:
            return Filtered(base, chain)
        return base

    def filter_chain(self) -> Tuple[FilterCall, ...]:
        calls: List[FilterCall] = []
        while self.match_symbol("|"):
            name = self.identifier("Expected filter name after '|'")
            args: List[Expr] = []
            kwargs: List[Tuple[str, Expr]] = []
            if self.match_symbol(":"):
                while True:
                    if self._is_keyword_argument():
                        key = self._advance().value
                        self._advance()
                        kwargs.append((key, self.primary()))
                    else:
                        args.append(self.primary())
                    if not self.match_symbol(","):
                        break
            calls.append(FilterCall(name, tuple(args), tuple(kwargs)))
        return tuple(calls)

    def primary(self) -> Expr:
        """Literal, range or variable path."""
        token = self.peek()

        if token.type == 'STRING':
            self._advance()
            return Literal(StringValue(token.value))
        if token.type == 'INTEGER':
            self._advance()
            return Literal(IntegerValue(int(token.value)))
        if token.type == 'DECIMAL':
            self._advance()
            return Literal(DecimalValue(Decimal(token.value)))
        if token.type == 'KEYWORD' and token.value in _KEYWORD_LITERALS:
            self._advance()
            return Literal(_KEYWORD_LITERALS[token.value])
        if token.type == 'SYMBOL' and token.value == '(':
            return self._parse_range()
        if token.type == 'IDENTIFIER':
            return self._parse_path()

        if token.type == 'EOF':
            raise self.error("Unexpected end of expression")
        raise self.error(f"Unexpected token '{token.value}'")

    def _parse_range(self) -> Expr:
        self._expect_symbol("(")
        start = self.primary()
        self._expect_symbol("..", "Expected '..' in range")
        stop = self.primary()
        self._expect_symbol(")", "Expected ')' after range")

        if (isinstance(start, Literal) and isinstance(stop, Literal)
                and isinstance(start.value, IntegerValue) and isinstance(stop.value, IntegerValue)):
            return Literal(RangeValue(start.value.value, stop.value.value))
        return RangeExpr(start, stop)

    def _parse_path(self) -> Path:
        root = self._advance().value
        accessors: List[Accessor] = []

        while True:
            if self.match_symbol("."):
                token = self.peek()
                if token.type in ('IDENTIFIER', 'KEYWORD'):
                    accessors.append(FieldAccessor(self._advance().value))
                elif token.type == 'INTEGER':
                    accessors.append(IndexAccessor(int(self._advance().value)))
                else:
                    raise self.error("Expected property name after '.'")
            elif self.match_symbol("["):
                accessors.append(self._parse_bracket_accessor())
            else:
                break

        return Path(root, tuple(accessors))

    def _parse_bracket_accessor(self) -> Accessor:
        token = self.peek()
        following = self._peek_next()
        is_simple = following.type == 'SYMBOL' and following.value == ']'

        if is_simple and token.type == 'INTEGER':
            self._advance()
            self._advance()
            return IndexAccessor(int(token.value))
        if is_simple and token.type == 'STRING':
            self._advance()
            self._advance()
            return FieldAccessor(token.value)

        key = self.expression()
        self._expect_symbol("]", "Expected ']' after index")
        return ExprAccessor(key)

    # Token helpers

    def peek(self) -> ExprToken:
        """Current token without advancing."""
        return self._tokens[min(self._position, len(self._tokens) - 1)]

    def _peek_next(self) -> ExprToken:
        return self._tokens[min(self._position + 1, len(self._tokens) - 1)]

    def _advance(self) -> ExprToken:
        token = self.peek()
        if token.type != 'EOF':
            self._position += 1
        return token

    def at_end(self) -> bool:
        return self.peek().type == 'EOF'

    def expect_end(self) -> None:
        if not self.at_end():
            raise self.error(f"Unexpected token '{self.peek().value}'")

    def match_symbol(self, symbol: str) -> bool:
        token = self.peek()
        if token.type == 'SYMBOL' and token.value == symbol:
            self._advance()
            return True
        return False

    def match_keyword(self, keyword: str) -> bool:
        """Matches a keyword or a bare word such as `in`, `reversed` or `limit`."""
        token = self.peek()
        if token.type in ('KEYWORD', 'IDENTIFIER') and token.value == keyword:
            self._advance()
            return True
        return False

    def _expect_symbol(self, symbol: str, message: Optional[str] = None) -> None:
        if not self.match_symbol(symbol):
            raise self.error(message or f"Expected '{symbol}'")

    def identifier(self, message: str = "Expected identifier") -> str:
        token = self.peek()
        if token.type != 'IDENTIFIER':
            raise self.error(message)
        self._advance()
        return token.value

    def _is_keyword_argument(self) -> bool:
        following = self._peek_next()
        return (self.peek().type == 'IDENTIFIER'
                and following.type == 'SYMBOL' and following.value == ':')

    def error(self, message: str) -> TemplateSyntaxError:
        """Builds a syntax error naming the offending fragment."""
        return TemplateSyntaxError(f"{message} in expression '{self.source}'")


def parse_expression(source: str) -> Expr:
    """
    Convenience function for parsing a full expression.

    Raises:
        TemplateSyntaxError: On a syntax error
    """
    return ExpressionParser(source).parse()


def parse_output_expression(source: str) -> Expr:
    """Parses the content of an output (`{{ … }}`)."""
    return parse_expression(source)


def parse_filter_chain(source: str) -> Expr:
    """
    Parses a single value with an optional filter chain, without operators.

    Used by tags whose argument is a value rather than a condition.
    """
    parser = ExpressionParser(source)
    if parser.at_end():
        raise parser.error("Empty expression")
    result = parser.filtered()
    parser.expect_end()
    return result


__all__ = [
    "ExprType",
    "Expr",
    "Literal",
    "Path",
    "FieldAccessor",
    "IndexAccessor",
    "ExprAccessor",
    "RangeExpr",
    "FilterCall",
    "Filtered",
    "Binary",
    "ExprToken",
    "ExpressionLexer",
    "ExpressionParser",
    "COMPARISON_OPERATORS",
    "parse_expression",
    "parse_output_expression",
    "parse_filter_chain",
]
