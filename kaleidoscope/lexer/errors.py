"""
Error handling for the Kaleidoscope lexer.

Provides error reporting with source location information and a shared
`Diagnostic` record used by every compiler stage.

Author: xwest
"""

from typing import Optional, List
from dataclasses import dataclass

from .tokens import SourceLocation


@dataclass
class Diagnostic:
    """Base record for compiler diagnostics (errors, warnings)."""
    message: str
    location: Optional[SourceLocation]
    severity: str  # "error", "warning"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        severity_prefix = self.severity.upper()
        if self.code:
            severity_prefix = f"{severity_prefix}[{self.code}]"
        result = f"{severity_prefix}: {self.message}\n"
        if self.location is not None:
            result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class KaleidoscopeError(Exception):
    """
    Root of every failure raised by the toolchain.

    Carries a `Diagnostic` so the driver can report any stage's failure
    the same way.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.location = location
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


class LexerError(KaleidoscopeError):
    """
    Exception raised when the lexer encounters a malformed token.

    Lexing cannot continue past the offending text.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        lexeme: str = "",
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message, location, code, help_text, suggestions)
        self.lexeme = lexeme


# Common error codes for categorization
ERROR_CODES = {
    "L003": "Invalid numeric literal",
}


def create_invalid_number_error(lexeme: str, location: SourceLocation, reason: str) -> LexerError:
    """Create an error for an invalid numeric literal."""
    return LexerError(
        message=f"Invalid numeric literal: '{lexeme}'",
        location=location,
        lexeme=lexeme,
        code="L003",
        help_text=reason,
        suggestions=["Use at most one decimal point", "Separate adjacent numbers with an operator"]
    )
