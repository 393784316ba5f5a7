"""
Lexical analyzer for Liquid templates.

Splits the source text into a flat sequence of TEXT, OUTPUT ({{ ... }})
and TAG ({% ... %}) tokens for the compiler. Raw and comment blocks are
resolved here, so the compiler never sees their bodies.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

from .errors import LexError

logger = logging.getLogger(__name__)


class TokenType(enum.Enum):
    """Token types of the template stream."""
    TEXT = "TEXT"
    OUTPUT = "OUTPUT"
    TAG = "TAG"


@dataclass(frozen=True)
class Token:
    """
    Token with positional information for precise error diagnostics.

    For OUTPUT tokens `value` is the expression source; for TAG tokens
    `name` is the tag keyword and `value` the raw argument text.
    """
    type: TokenType
    value: str
    position: int        # Offset in the source text
    line: int            # Line number (1-based)
    column: int          # Column number (1-based)
    name: str = ""

    def __repr__(self) -> str:
        if self.type is TokenType.TAG:
            return f"Token(TAG, {self.name!r}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class TemplateLexer:
    """
    Template lexer.

    Scans for `{{ … }}` and `{% … %}` pairs. Handles whitespace control
    markers (`{{-`, `-}}`, `{%-`, `-%}`), verbatim `raw` blocks and
    (nested) `comment` blocks.

    In lenient mode (the default) malformed delimiters are kept in the
    output as plain text; in strict mode they raise LexError.
    """

    _OPENERS = re.compile(r'\{\{|\{%')
    _CLOSERS = {"{{": "}}", "{%": "%}"}
    _ENDRAW = re.compile(r'\{%-?\s*endraw\s*-?%\}')
    _COMMENT_EDGE = re.compile(r'\{%-?\s*(comment|endcomment)\b.*?-?%\}', re.DOTALL)

    def __init__(self, text: str, strict: bool = False):
        self.text = text
        self.strict = strict
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = len(text)

        self._tokens: List[Token] = []
        # Set by a `-}}`/`-%}` marker: strip leading whitespace of the next text
        self._strip_next_text = False

    def tokenize(self) -> List[Token]:
        """
        Tokenizes the whole source text.

        Returns:
            List of tokens in source order

        Raises:
            LexError: Unterminated delimiter or block in strict mode
        """
        while self.position < self.length:
            match = self._OPENERS.search(self.text, self.position)
            if match is None:
                self._emit_text(self.text[self.position:])
                break

            self._emit_text(self.text[self.position:match.start()])
            opener = match.group(0)
            closer = self._CLOSERS[opener]
            end = self.text.find(closer, match.end())
            if end == -1:
                self._unterminated(f"Unterminated '{opener}' delimiter", self.line, self.column)
                break

            inner = self.text[match.end():end]
            strip_left = inner.startswith("-")
            strip_right = inner.endswith("-") and len(inner) > (1 if strip_left else 0)
            if strip_left:
                inner = inner[1:]
                self._rstrip_previous_text()
            if strip_right:
                inner = inner[:-1]

            start_line, start_column = self.line, self.column
            start = match.start()
            self._advance(end + len(closer) - self.position)

            if opener == "{{":
                self._tokens.append(Token(TokenType.OUTPUT, inner.strip(), start, start_line, start_column))
                self._strip_next_text = strip_right
                continue

            name, args = self._split_tag(inner)
            if name == "raw":
                self._strip_next_text = strip_right
                self._read_raw_block(start_line, start_column)
            elif name == "comment":
                self._skip_comment_block(start_line, start_column)
            elif name.startswith("#"):
                # Inline comment tag: {% # note %}
                self._strip_next_text = strip_right
            else:
                self._tokens.append(Token(TokenType.TAG, args, start, start_line, start_column, name=name))
                self._strip_next_text = strip_right

        logger.debug("Tokenized template into %d tokens", len(self._tokens))
        return self._tokens

    # Helpers

    def _split_tag(self, inner: str) -> Tuple[str, str]:
        """Splits tag content into keyword and raw argument text at the first whitespace run."""
        parts = inner.split(None, 1)
        if not parts:
            return "", ""
        return parts[0], (parts[1].strip() if len(parts) > 1 else "")

    def _read_raw_block(self, line: int, column: int) -> None:
        """Copies everything up to `{% endraw %}` into a TEXT token; only whitespace markers apply."""
        match = self._ENDRAW.search(self.text, self.position)
        if match is None:
            self._unterminated("Unterminated 'raw' block", line, column)
            return

        body = self.text[self.position:match.start()]
        closing = match.group(0)
        if self._strip_next_text:
            body = body.lstrip()
        if closing.startswith("{%-"):
            body = body.rstrip()
        if body:
            self._tokens.append(Token(TokenType.TEXT, body, self.position, self.line, self.column))
        self._strip_next_text = closing.endswith("-%}")
        self._advance(match.end() - self.position)

    def _skip_comment_block(self, line: int, column: int) -> None:
        """Discards everything up to the matching `{% endcomment %}`."""
        depth = 1
        scan = self.position
        while depth:
            match = self._COMMENT_EDGE.search(self.text, scan)
            if match is None:
                if self.strict:
                    raise LexError("Unterminated 'comment' block", line, column)
                logger.warning("Unterminated 'comment' block at %d:%d, discarding the rest", line, column)
                self._advance(self.length - self.position)
                return
            depth += 1 if match.group(1) == "comment" else -1
            scan = match.end()

        self._strip_next_text = self.text[:scan].endswith("-%}")
        self._advance(scan - self.position)

    def _unterminated(self, message: str, line: int, column: int) -> None:
        """Handles an unterminated construct opened at line:column."""
        if self.strict:
            raise LexError(message, line, column)

        logger.warning("%s at %d:%d, keeping it as text", message, line, column)
        self._emit_text(self.text[self.position:], raw=True)

    def _emit_text(self, text: str, raw: bool = False) -> None:
        line, column, start = self.line, self.column, self.position
        self._advance(len(text))
        if self._strip_next_text and not raw:
            text = text.lstrip()
        self._strip_next_text = False
        if text:
            self._tokens.append(Token(TokenType.TEXT, text, start, line, column))

    def _rstrip_previous_text(self) -> None:
        if not self._tokens or self._tokens[-1].type is not TokenType.TEXT:
            return
        previous = self._tokens.pop()
        stripped = previous.value.rstrip()
        if stripped:
            self._tokens.append(Token(
                TokenType.TEXT, stripped, previous.position, previous.line, previous.column
            ))

    def _advance(self, count: int) -> None:
        """
        Moves the position forward by the given number of characters,
        updating line and column numbers.
        """
        chunk = self.text[self.position:self.position + count]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(chunk) - chunk.rfind("\n")
        else:
            self.column += len(chunk)
        self.position += len(chunk)


def tokenize_template(text: str, strict: bool = False) -> List[Token]:
    """
    Convenience function for tokenizing a template.

    Args:
        text: Template source text
        strict: Raise on malformed delimiters instead of keeping them as text

    Returns:
        List of tokens

    Raises:
        LexError: On a lexing error in strict mode
    """
    lexer = TemplateLexer(text, strict=strict)
    return lexer.tokenize()


__all__ = [
    "TokenType",
    "Token",
    "TemplateLexer",
    "tokenize_template",
]
