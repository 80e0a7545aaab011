"""
Token definitions for the Kaleidoscope lexer.

The language has very few token classes: two keywords, identifiers,
numbers, and single-character symbols. Everything the lexer does not
recognise as one of the first four becomes a symbol; the parser decides
whether a symbol is meaningful.

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Tuple


class TokenType(Enum):
    """Enumeration of all token types in Kaleidoscope."""

    # Keywords
    DEF = auto()                    # def
    EXTERN = auto()                 # extern

    # Primary
    IDENTIFIER = auto()             # foo, x1
    NUMBER = auto()                 # 1, 2.5, .5

    # Any other single character: ( ) , ; + - * < ...
    SYMBOL = auto()

    # End of stream sentinel
    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and for annotating AST nodes.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of buffer

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    A lexical token.

    `value` holds the semantic payload: the name for identifiers, a float
    for numbers, the character for symbols, and None for keywords and EOF.
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any
    location: SourceLocation

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return "end of input"
        if self.is_keyword:
            return f"'{self.lexeme}'"
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    def kind(self) -> Tuple[TokenType, Any]:
        """Location-insensitive identity of the token."""
        return (self.type, self.value)

    def is_symbol(self, char: str) -> bool:
        """Check if this token is the given single-character symbol."""
        return self.type == TokenType.SYMBOL and self.value == char

    @property
    def is_keyword(self) -> bool:
        return self.type in (TokenType.DEF, TokenType.EXTERN)

    @property
    def is_eof(self) -> bool:
        return self.type == TokenType.EOF


# Reserved words, fixed for the lifetime of the process
KEYWORDS: Mapping[str, TokenType] = MappingProxyType({
    "def": TokenType.DEF,
    "extern": TokenType.EXTERN,
})
