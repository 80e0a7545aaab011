"""
Kaleidoscope Lexer - turns a source buffer into tokens, one at a time.

Tokens are produced lazily: the parser pulls the next one when it needs
it, so the lexer only ever looks at the text under its cursor. The cursor
never moves backwards.

xwest
"""

from typing import Iterator, List

from .tokens import Token, TokenType, SourceLocation, KEYWORDS
from .errors import create_invalid_number_error


# str.isspace() also accepts Unicode spaces, we only skip ASCII ones
WHITESPACE = frozenset(" \t\n\r\x0b\x0c")
COMMENT_START = "#"


class Lexer:
    """
    Kaleidoscope lexical analyzer.

    Converts source code text into a stream of tokens. Whitespace and
    `#` line comments are skipped and never surface as tokens.
    """

    def __init__(self, source: str, filename: str = "<stdin>"):
        """
        Initialize the lexer with source code.

        Args:
            source: Source code string, read-only for the lexer's lifetime
            filename: Name of source file for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def next_token(self) -> Token:
        """
        Scan and return the next token.

        Returns an EOF token once the buffer is exhausted, and keeps
        returning it on every later call.

        Raises:
            LexerError: If a numeric literal cannot be parsed
        """
        self._skip_whitespace_and_comments()

        location = self._location()
        if self._at_end():
            return Token(TokenType.EOF, "", None, location)

        current_char = self.source[self.pos]

        if self._is_identifier_start(current_char):
            return self._tokenize_identifier_or_keyword(location)

        if self._is_number_char(current_char):
            return self._tokenize_number(location)

        # Anything else is a symbol, valid or not
        self._advance()
        return Token(TokenType.SYMBOL, current_char, current_char, location)

    def tokenize(self) -> List[Token]:
        """
        Drain the rest of the stream.

        Returns:
            List of tokens terminated by the EOF token
        """
        tokens = list(self)
        tokens.append(self.next_token())
        return tokens

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        token = self.next_token()
        if token.is_eof:
            raise StopIteration
        return token

    def _tokenize_identifier_or_keyword(self, location: SourceLocation) -> Token:
        """Tokenize the maximal alphanumeric run starting at the cursor."""
        start_pos = self.pos
        self._advance()

        while not self._at_end() and self._is_identifier_continue(self.source[self.pos]):
            self._advance()

        lexeme = self.source[start_pos:self.pos]

        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        value = lexeme if token_type == TokenType.IDENTIFIER else None

        return Token(token_type, lexeme, value, location)

    def _tokenize_number(self, location: SourceLocation) -> Token:
        """Tokenize the maximal run of digits and dots as a double."""
        start_pos = self.pos

        while not self._at_end() and self._is_number_char(self.source[self.pos]):
            self._advance()

        lexeme = self.source[start_pos:self.pos]

        try:
            value = float(lexeme)
        except ValueError:
            if lexeme.count('.') > 1:
                reason = "A number may contain at most one decimal point."
            else:
                reason = "A number needs at least one digit."
            raise create_invalid_number_error(lexeme, location, reason) from None

        return Token(TokenType.NUMBER, lexeme, value, location)

    def _skip_whitespace_and_comments(self):
        """Skip whitespace and `#` comments up to the next token."""
        while not self._at_end():
            char = self.source[self.pos]

            if char in WHITESPACE:
                self._advance()
                continue

            # Comment runs to end of line, the newline is skipped as whitespace
            if char == COMMENT_START:
                while not self._at_end() and self.source[self.pos] != '\n':
                    self._advance()
                continue

            break

    @staticmethod
    def _is_identifier_start(char: str) -> bool:
        return char.isascii() and char.isalpha()

    @staticmethod
    def _is_identifier_continue(char: str) -> bool:
        return char.isascii() and char.isalnum()

    @staticmethod
    def _is_number_char(char: str) -> bool:
        return char == '.' or (char.isascii() and char.isdigit())

    def _advance(self):
        """Advance position by one character, updating line/column."""
        if self.source[self.pos] == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.pos)


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens, ending with EOF

    Raises:
        LexerError: If lexing fails
    """
    return Lexer(source, filename).tokenize()


def tokenize_file(filepath: str) -> List[Token]:
    """
    Convenience function to tokenize a source file.

    Raises:
        LexerError: If lexing fails
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()

    return tokenize_string(source, filepath)
