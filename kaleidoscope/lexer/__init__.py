"""
Kaleidoscope Lexer Package

Lazy, single-pass tokenizer for the Kaleidoscope toy language.

Author: xwest
"""

from .tokens import Token, TokenType, SourceLocation, KEYWORDS
from .lexer import Lexer, tokenize_string, tokenize_file
from .errors import Diagnostic, KaleidoscopeError, LexerError

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "KEYWORDS",
    "Diagnostic",
    "KaleidoscopeError",
    "LexerError",
    "tokenize_string",
    "tokenize_file",
]
