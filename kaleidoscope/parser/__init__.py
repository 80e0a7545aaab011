"""
Kaleidoscope Parser Package

Recursive descent parser with precedence climbing for binary operators.
Produces immutable AST nodes that a backend consumes through the visitor
interface.

Author: xwest
"""

from .ast_nodes import (
    ASTNode, ASTNodeType, ASTVisitor, Expr, NumberExpr, VariableExpr,
    BinaryExpr, CallExpr, Prototype, Function, TopLevel, ANONYMOUS_PREFIX,
    SExpressionFormatter, make_anonymous_function, walk
)
from .parser import Parser, BINOP_PRECEDENCE, parse_string, parse_file
from .errors import ParseError

__all__ = [
    # Core parser
    "Parser", "BINOP_PRECEDENCE", "parse_string", "parse_file",

    # AST nodes
    "ASTNode", "ASTNodeType", "ASTVisitor",
    "Expr", "NumberExpr", "VariableExpr", "BinaryExpr", "CallExpr",
    "Prototype", "Function", "TopLevel", "ANONYMOUS_PREFIX",
    "SExpressionFormatter", "make_anonymous_function", "walk",

    # Error handling
    "ParseError",
]
