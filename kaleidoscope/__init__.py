"""
Kaleidoscope Compiler Package

A small compiler for the Kaleidoscope toy language: function definitions,
extern declarations, numbers, variables, calls and binary operators.

Architecture:
    kaleidoscope/
    ├── lexer/           # Tokenization
    ├── parser/          # Syntax analysis and AST
    ├── backend/         # LLVM IR generation
    └── jit/             # Native execution and the driver loop

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__license__ = "MIT"

from .lexer import Lexer, LexerError, KaleidoscopeError
from .parser import Parser, ParseError, parse_string

__all__ = [
    # Core classes
    "Lexer",
    "Parser",
    "parse_string",

    # Errors
    "KaleidoscopeError",
    "LexerError",
    "ParseError",

    # Version info
    "__version__",
    "__author__",
    "__license__",
]
