"""
Diagnostics for the rath frontend.

Every failure in the pipeline is reported through one exception family,
`RathError`, which subclasses the builtin `SyntaxError` so callers that
already catch `SyntaxError` keep working. The rendered message always has
the shape::

    Error in <filename>:<line>:
    <source line text>
      > <message>

Classes:
    SourceFile: A source buffer plus its display name; builds errors.
    RathError: Base class for all frontend errors.
    LexError: Invalid character, operator lexeme, number or string.
    ParseError: Unexpected or missing token, illegal operator placement.
    DeclarationError: Invalid `let` variable list.
    FoldError: Operator invalid for the constant operand types.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rath.rath_constants import DEFAULT_FILENAME

if TYPE_CHECKING:
    from rath.rath_lexer import Token


class RathError(SyntaxError):
    """Base error carrying a source position and a formatted message.

    Attributes:
        message (str): The bare human-readable message.
        filename (str): Display name of the source.
        lineno (int): 1-based line of the offending token.
        byte_offset (int): Offset of the offending token in the source.
        text (str): The full source line containing the offset.
    """

    def __init__(
        self,
        message: str,
        filename: str = DEFAULT_FILENAME,
        lineno: int = 0,
        byte_offset: int = 0,
        text: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.lineno = lineno
        self.byte_offset = byte_offset
        self.text = text

    def __str__(self) -> str:
        return f"Error in {self.filename}:{self.lineno}:\n{self.text}\n  > {self.message}"


class LexError(RathError):
    """Raised by the lexer on an invalid character or lexeme."""


class ParseError(RathError):
    """Raised by the parser on the first grammar violation."""


class DeclarationError(ParseError):
    """Raised when a `let` names no variables or packs its first one."""


class FoldError(RathError):
    """Raised when constant folding meets an operator invalid for its operands."""


class SourceFile:
    """A source buffer and the filename used to report positions inside it."""

    def __init__(self, text: str, filename: str = DEFAULT_FILENAME) -> None:
        self.text = text
        self.filename = filename

    def __len__(self) -> int:
        return len(self.text)

    def line_text(self, offset: int) -> str:
        """Returns the full line of source containing `offset`, without its newline."""
        offset = max(0, min(offset, len(self.text)))
        start = self.text.rfind("\n", 0, offset) + 1
        end = self.text.find("\n", offset)
        if end == -1:
            end = len(self.text)
        return self.text[start:end]

    def error(
        self, cls: type[RathError], message: str, line: int, offset: int
    ) -> RathError:
        """Builds (but does not raise) an error of type `cls` at a position."""
        return cls(message, self.filename, line, offset, self.line_text(offset))

    def token_error(
        self, cls: type[RathError], message: str, token: Token
    ) -> RathError:
        return self.error(cls, message, token.line, token.offset)
