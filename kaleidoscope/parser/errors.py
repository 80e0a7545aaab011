"""
Error handling for the Kaleidoscope parser.

Every grammar violation is reported as a ParseError naming the token
that was found and what the grammar expected at that position.

Author: xwest
"""

from typing import Optional, List

from ..lexer.tokens import Token, SourceLocation
from ..lexer.errors import KaleidoscopeError


class ParseError(KaleidoscopeError):
    """
    Exception raised when the parser encounters a syntax error.

    Attributes:
        token: The offending token, if any
        expected: Human-readable description of what was expected
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation],
        token: Optional[Token] = None,
        expected: Optional[str] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message, location, code, help_text, suggestions)
        self.token = token
        self.expected = expected


# Common parser error codes for categorization
PARSER_ERROR_CODES = {
    "P001": "Unexpected token",
    "P004": "Unclosed delimiter",
    "P005": "Invalid expression",
    "P006": "Duplicate parameter name",
    "P010": "Unexpected end of input",
}


def _suggest_missing_token(expected: str) -> List[str]:
    token_suggestions = {
        "')'": ["Add a closing parenthesis ')'"],
        "'('": ["Add an opening parenthesis '(' after the function name"],
        "identifier": ["Names must start with a letter"],
    }
    return token_suggestions.get(expected, [])


def create_unexpected_token_error(expected: str, found: Token) -> ParseError:
    """Create an error for an unexpected token."""
    if found.is_eof:
        return ParseError(
            message=f"Unexpected end of input, expected {expected}",
            location=found.location,
            token=found,
            expected=expected,
            code="P010",
            help_text=f"The parser reached the end of the input while expecting {expected}.",
            suggestions=_suggest_missing_token(expected)
        )

    return ParseError(
        message=f"Expected {expected}, found {found}",
        location=found.location,
        token=found,
        expected=expected,
        code="P001",
        help_text=f"The parser expected to see {expected} at this position, but found {found} instead.",
        suggestions=_suggest_missing_token(expected)
    )


def create_unclosed_delimiter_error(open_location: SourceLocation, found: Token) -> ParseError:
    """Create an error for a '(' that was never closed."""
    return ParseError(
        message=f"Expected ')', found {found}",
        location=found.location,
        token=found,
        expected="')'",
        code="P004",
        help_text=f"The '(' at {open_location} was never closed.",
        suggestions=["Add a closing ')'"]
    )


def create_invalid_expression_error(found: Token) -> ParseError:
    """Create an error for a token that cannot start an expression."""
    expected = "an identifier, a number or '('"
    if found.is_eof:
        return create_unexpected_token_error(expected, found)

    return ParseError(
        message=f"Expected expression, found {found}",
        location=found.location,
        token=found,
        expected=expected,
        code="P005",
        help_text=f"An expression must start with {expected}.",
    )


def create_duplicate_parameter_error(name: str, function_name: str, token: Token) -> ParseError:
    """Create an error for a parameter name used twice in one prototype."""
    return ParseError(
        message=f"Duplicate parameter '{name}' in prototype of '{function_name}'",
        location=token.location,
        token=token,
        expected="a distinct parameter name",
        code="P006",
        help_text="Each parameter of a function must have a unique name.",
        suggestions=[f"Rename the second '{name}'"]
    )
