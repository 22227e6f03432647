"""
Lexical analyzer for the rath language.

This module converts raw rath source into a stream of tokens:

Classes:
    CharacterStream: Cursor over a `SourceFile` with line tracking.
    Token: Immutable lexical token with kind, text and source position.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Features:
    - Skips spaces, tabs and carriage returns; a run of whitespace holding
      at least one newline produces a single NEWLINE token
    - Recognizes:
        * Identifiers and keywords (`[A-Za-z_$][A-Za-z0-9_$]*`)
        * Numbers (integer and float, at most one `.`)
        * Strings (double quoted, no escape sequences)
        * Operators (maximal munch over the operator characters)
        * Punctuation and the `->` arrow

Raises:
    LexError: On an invalid character, operator, float literal or an
        unterminated string.

Example:
    >>> lexer = Lexer(CharacterStream(SourceFile("let x = 5")))
    >>> lexer.next_token()
    Token(KEYWORD, let)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from rath.rath_constants import (
    ARROW,
    ARROW_TEXT,
    DEFAULT_FILENAME,
    EOF,
    IDENT,
    KEYWORD,
    NEWLINE,
    NUMBER,
    OPERATOR,
    OPERATOR_CHARS,
    STRING,
    keywords,
    punctuation_tokens,
    valid_operators,
)
from rath.rath_errors import LexError, SourceFile

logger = logging.getLogger(__name__)


class CharacterStream:
    """
    Reads characters from a `SourceFile` while tracking the line number.

    The stream only moves forward; token-level lookahead is the parser's job.

    Attributes:
        source (SourceFile): The buffer being read.
        position (int): Current offset into the buffer.
        line (int): Current line number (1-indexed).
    """

    def __init__(self, source: SourceFile, position: int = 0, line: int = 1):
        self.source = source
        self.position = position
        self.line = line

    @property
    def text(self) -> str:
        return self.source.text

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.text):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.text[self.position]
        if char == "\n":
            self.line += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.text):
            return ""
        return self.text[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.text)


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    Attributes:
        kind (str): The token kind (e.g. 'IDENT', 'OPERATOR', 'EOF').
        text (str): The raw lexeme; for strings, the text between the quotes.
        offset (int): Offset of the lexeme's first character in the source.
        line (int): The 1-based line number of the lexeme.
    """

    kind: str
    text: str = ""
    offset: int = 0
    line: int = 0

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.text})"

    def __bool__(self) -> bool:
        return self.kind != EOF

    def is_keyword(self, word: str) -> bool:
        return self.kind == KEYWORD and self.text == word

    def is_operator(self, op: str) -> bool:
        return self.kind == OPERATOR and self.text == op


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_ident_start(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch in "_$"


def _is_ident(ch: str) -> bool:
    return _is_ident_start(ch) or _is_digit(ch)


class Lexer:
    """Lexical analyzer for the rath language.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    @property
    def source(self) -> SourceFile:
        return self.stream.source

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def error(self, message: str, line: int, offset: int) -> LexError:
        err = self.source.error(LexError, message, line, offset)
        assert isinstance(err, LexError)  # for mypy
        return err

    def skip_whitespace(self) -> Token | None:
        """Skips whitespace, returning a NEWLINE token if the run crossed a line."""
        newline: Token | None = None
        while not self.stream.end_of_file() and self.peek() in " \t\r\n":
            if self.peek() == "\n" and newline is None:
                newline = Token(NEWLINE, "\n", self.stream.position, self.stream.line)
            self.advance()
        return newline

    def read_while(self, check: Callable[[str], bool]) -> str:
        text = ""
        while not self.stream.end_of_file() and check(self.peek()):
            text += self.advance()
        return text

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or an EOF token once the input is exhausted.

        Raises:
            LexError: If a malformed token is encountered.
        """
        newline = self.skip_whitespace()
        if newline is not None:
            return newline

        line, start = self.stream.line, self.stream.position
        if self.stream.end_of_file():
            return Token(EOF, "", start, line)

        ch = self.peek()

        # 1. String
        if ch == '"':
            self.advance()
            text = self.read_while(lambda c: c != '"')
            if self.stream.end_of_file():
                raise self.error("Unterminated string", line, start)
            self.advance()
            return Token(STRING, text, start, line)

        # 2. Number or float
        if _is_digit(ch):
            text = self.read_while(lambda c: _is_digit(c) or c == ".")
            if text.count(".") > 1:
                raise self.error(f"Invalid float literal {text}", line, start)
            return Token(NUMBER, text, start, line)

        # 3. Operator or arrow
        if ch in OPERATOR_CHARS:
            text = self.read_while(lambda c: c in OPERATOR_CHARS)
            if text == ARROW_TEXT:
                return Token(ARROW, text, start, line)
            if text not in valid_operators:
                raise self.error(f"Invalid operator {text}", line, start)
            return Token(OPERATOR, text, start, line)

        # 4. Identifier or keyword
        if _is_ident_start(ch):
            text = self.read_while(_is_ident)
            return Token(KEYWORD if text in keywords else IDENT, text, start, line)

        # 5. Punctuation
        if ch in punctuation_tokens:
            self.advance()
            return Token(punctuation_tokens[ch], ch, start, line)

        # 6. Unknown character
        raise self.error(f"Invalid char: {ch}", line, start)

    def tokenize(self) -> list[Token]:
        """Lexes the whole stream, returning every token including the final EOF."""
        tokens = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.kind == EOF:
                break
        logger.debug("Lexed %d tokens from %s", len(tokens), self.source.filename)
        return tokens


def tokenize(source: str, filename: str = DEFAULT_FILENAME) -> list[Token]:
    """Convenience wrapper: lexes `source` into a token list ending with EOF."""
    return Lexer(CharacterStream(SourceFile(source, filename))).tokenize()


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
