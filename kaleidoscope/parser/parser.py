"""
Kaleidoscope Recursive Descent Parser

Recursive descent for the top-level grammar, precedence climbing for
binary operator expressions. The parser keeps exactly one token of
lookahead (`self.token`) and pulls tokens from the lexer on demand.

    top        := (definition | extern | expression | ';')*
    definition := 'def' prototype expression
    extern     := 'extern' prototype
    prototype  := identifier '(' identifier* ')'
    expression := primary binoprhs
    primary    := identifier ['(' (expression (',' expression)*)? ')']
                | number
                | '(' expression ')'
    binoprhs   := (binop primary)*

Author: xwest
"""

import logging
from types import MappingProxyType
from typing import List, Mapping, Optional

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType
from ..lexer.errors import LexerError
from .ast_nodes import (
    Expr, NumberExpr, VariableExpr, BinaryExpr, CallExpr,
    Prototype, Function, TopLevel
)
from .errors import (
    create_unexpected_token_error, create_unclosed_delimiter_error,
    create_invalid_expression_error, create_duplicate_parameter_error
)

logger = logging.getLogger(__name__)


# Binary operator precedence, higher binds tighter. All are left-associative.
BINOP_PRECEDENCE: Mapping[str, int] = MappingProxyType({
    '<': 10,
    '+': 20,
    '-': 20,
    '*': 40,  # highest
})

# Returned for tokens that are not binary operators
NO_PRECEDENCE = -1


class Parser:
    """
    Kaleidoscope parser.

    Builds one top-level unit at a time from the lexer's token stream.
    Successfully parsed units accumulate in `units`, in source order.
    Not safe to share between threads; use one parser per buffer.
    """

    def __init__(self, lexer: Lexer, binop_precedence: Optional[Mapping[str, int]] = None):
        """
        Initialize parser over a lexer.

        Args:
            lexer: Token source for a single buffer
            binop_precedence: Operator table replacing BINOP_PRECEDENCE

        Raises:
            ValueError: If the operator table is malformed
        """
        self.lexer = lexer
        self.binop_precedence = self._validate_precedence_table(binop_precedence)
        self.token: Optional[Token] = None
        self.units: List[TopLevel] = []

    @staticmethod
    def _validate_precedence_table(table: Optional[Mapping[str, int]]) -> Mapping[str, int]:
        if table is None:
            return BINOP_PRECEDENCE

        for op, precedence in table.items():
            if not isinstance(op, str) or len(op) != 1:
                raise ValueError(f"Binary operator must be a single character, got {op!r}")
            if op.isalnum() or op.isspace() or op in "(),;#.":
                raise ValueError(f"Character {op!r} cannot be used as a binary operator")
            if precedence < 1:
                raise ValueError(f"Precedence of {op!r} must be positive, got {precedence}")

        return MappingProxyType(dict(table))

    # Token consumption

    def advance(self) -> Token:
        """Replace the lookahead with the next token from the lexer."""
        # Left unset if the lexer raises, so recovery knows the unit is broken
        self.token = None
        self.token = self.lexer.next_token()
        return self.token

    @property
    def current(self) -> Token:
        """The lookahead token, pulling the first one on demand."""
        if self.token is None:
            return self.advance()
        return self.token

    def _expect_symbol(self, char: str) -> Token:
        """Consume the given symbol or raise."""
        token = self.current
        if not token.is_symbol(char):
            raise create_unexpected_token_error(f"'{char}'", token)
        self.advance()
        return token

    def _expect_identifier(self, expected: str = "identifier") -> Token:
        token = self.current
        if token.type != TokenType.IDENTIFIER:
            raise create_unexpected_token_error(expected, token)
        self.advance()
        return token

    # Top level

    def parse(self) -> List[TopLevel]:
        """
        Parse the whole buffer.

        Returns:
            All top-level units in source order

        Raises:
            LexerError, ParseError: On the first failure; nothing is salvaged
        """
        while self.parse_next() is not None:
            pass
        return list(self.units)

    def parse_next(self) -> Optional[TopLevel]:
        """
        Parse the next top-level unit, skipping empty `;` statements.

        Returns:
            A Function, a Prototype, a bare expression, or None at end of input
        """
        while True:
            token = self.current

            if token.is_eof:
                return None

            if token.is_symbol(';'):
                self.advance()
                continue

            if token.type == TokenType.DEF:
                unit = self.parse_definition()
            elif token.type == TokenType.EXTERN:
                unit = self.parse_extern()
            else:
                unit = self.parse_expression()

            self.units.append(unit)
            logger.debug("parsed %s at %s", unit.node_type.value, token.location)
            return unit

    def synchronize(self):
        """
        Skip the rest of a failed unit.

        Discards tokens until the lookahead is a `;` or end of input.
        Malformed text inside the skipped region is ignored.
        """
        while self.token is None or not (self.token.is_symbol(';') or self.token.is_eof):
            try:
                self.advance()
            except LexerError as e:
                logger.debug("skipping malformed text during recovery: %s", e.message)

    # definition ::= 'def' prototype expression
    def parse_definition(self) -> Function:
        def_token = self.current
        if def_token.type != TokenType.DEF:
            raise create_unexpected_token_error("'def'", def_token)
        self.advance()

        prototype = self.parse_prototype()
        body = self.parse_expression()

        return Function(prototype, body, def_token.location)

    # extern ::= 'extern' prototype
    def parse_extern(self) -> Prototype:
        extern_token = self.current
        if extern_token.type != TokenType.EXTERN:
            raise create_unexpected_token_error("'extern'", extern_token)
        self.advance()

        return self.parse_prototype()

    # prototype ::= identifier '(' identifier* ')'
    def parse_prototype(self) -> Prototype:
        name_token = self._expect_identifier("function name")
        self._expect_symbol('(')

        params: List[str] = []
        while self.current.type == TokenType.IDENTIFIER:
            param_token = self.current
            if param_token.value in params:
                raise create_duplicate_parameter_error(param_token.value, name_token.value, param_token)
            params.append(param_token.value)
            self.advance()

        if not self.current.is_symbol(')'):
            raise create_unexpected_token_error("parameter name or ')'", self.current)
        self.advance()

        return Prototype(name_token.value, tuple(params), name_token.location)

    # Expressions

    # expression ::= primary binoprhs
    def parse_expression(self) -> Expr:
        lhs = self.parse_primary()
        return self.parse_binoprhs(lhs, 0)

    # primary ::= identifierexpr | numberexpr | parenexpr
    def parse_primary(self) -> Expr:
        token = self.current

        if token.type == TokenType.IDENTIFIER:
            return self._parse_identifier_expr()
        if token.type == TokenType.NUMBER:
            self.advance()
            return NumberExpr(token.value, token.location)
        if token.is_symbol('('):
            return self._parse_paren_expr()

        raise create_invalid_expression_error(token)

    def _parse_identifier_expr(self) -> Expr:
        """Variable reference, or a call if the name is followed by '('."""
        name_token = self.current
        self.advance()

        if not self.current.is_symbol('('):
            return VariableExpr(name_token.value, name_token.location)

        self.advance()  # Consume (

        args: List[Expr] = []
        if not self.current.is_symbol(')'):
            while True:
                args.append(self.parse_expression())
                if self.current.is_symbol(')'):
                    break
                if not self.current.is_symbol(','):
                    raise create_unexpected_token_error("',' or ')' in argument list", self.current)
                self.advance()

        self.advance()  # Consume )

        return CallExpr(name_token.value, tuple(args), name_token.location)

    def _parse_paren_expr(self) -> Expr:
        open_token = self.current
        self.advance()  # Consume (

        expr = self.parse_expression()

        if not self.current.is_symbol(')'):
            raise create_unclosed_delimiter_error(open_token.location, self.current)
        self.advance()

        return expr

    def parse_binoprhs(self, lhs: Expr, min_precedence: int) -> Expr:
        """
        Precedence climbing over a chain of `binop primary` pairs.

        Args:
            lhs: Expression already parsed to the left of the chain
            min_precedence: Operators binding looser than this end the chain

        Returns:
            The combined expression
        """
        while True:
            precedence = self._token_precedence()
            if precedence < min_precedence:
                return lhs

            op_token = self.current
            self.advance()
            rhs = self.parse_primary()

            # If the operator after rhs binds tighter, it takes rhs as its lhs
            next_precedence = self._token_precedence()
            if precedence < next_precedence:
                rhs = self.parse_binoprhs(rhs, precedence + 1)

            lhs = BinaryExpr(op_token.value, lhs, rhs, op_token.location)

    def _token_precedence(self) -> int:
        token = self.current
        if token.type != TokenType.SYMBOL:
            return NO_PRECEDENCE
        return self.binop_precedence.get(token.value, NO_PRECEDENCE)


def parse_string(source: str, filename: str = "<string>",
                 binop_precedence: Optional[Mapping[str, int]] = None) -> List[TopLevel]:
    """
    Convenience function to parse a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting
        binop_precedence: Optional replacement operator table

    Returns:
        Top-level units in source order

    Raises:
        LexerError, ParseError: If parsing fails
    """
    parser = Parser(Lexer(source, filename), binop_precedence)
    return parser.parse()


def parse_file(filepath: str) -> List[TopLevel]:
    """
    Convenience function to parse a source file.

    Raises:
        LexerError, ParseError: If parsing fails
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()

    return parse_string(source, filepath)
