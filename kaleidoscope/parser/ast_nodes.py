"""
Abstract Syntax Tree node definitions for Kaleidoscope.

Nodes are immutable and form a strict tree: every parent owns its
children and nothing is shared. Each node exposes `accept()` so a backend
can dispatch on the variant, and `children()` for generic traversal.

Author: xwest
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Tuple, Union

from ..lexer.tokens import SourceLocation


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    # Expressions
    NUMBER_EXPR = "NumberExpr"
    VARIABLE_EXPR = "VariableExpr"
    BINARY_EXPR = "BinaryExpr"
    CALL_EXPR = "CallExpr"

    # Top-level items
    PROTOTYPE = "Prototype"
    FUNCTION = "Function"


class ASTVisitor(ABC):
    """
    Abstract visitor interface, one operation per node variant.

    Implementations decide traversal order; code generators visit the
    children of a node before combining them.
    """

    @abstractmethod
    def visit_number_expr(self, node: 'NumberExpr') -> Any:
        pass

    @abstractmethod
    def visit_variable_expr(self, node: 'VariableExpr') -> Any:
        pass

    @abstractmethod
    def visit_binary_expr(self, node: 'BinaryExpr') -> Any:
        pass

    @abstractmethod
    def visit_call_expr(self, node: 'CallExpr') -> Any:
        pass

    @abstractmethod
    def visit_prototype(self, node: 'Prototype') -> Any:
        pass

    @abstractmethod
    def visit_function(self, node: 'Function') -> Any:
        pass


class ASTNode(ABC):
    """Base class for all AST nodes."""

    node_type: ASTNodeType

    @abstractmethod
    def accept(self, visitor: ASTVisitor) -> Any:
        """Accept a visitor (visitor pattern)."""

    @abstractmethod
    def children(self) -> Tuple['ASTNode', ...]:
        """Get all child nodes, in source order."""

    def __str__(self) -> str:
        return SExpressionFormatter().format(self)


# ============================================================================
# Expressions
# ============================================================================

class Expr(ASTNode):
    """Base class for expressions."""


@dataclass(frozen=True, eq=True)
class NumberExpr(Expr):
    """Numeric literal, always a double."""
    value: float
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.NUMBER_EXPR

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_number_expr(self)

    def children(self) -> Tuple[ASTNode, ...]:
        return ()


@dataclass(frozen=True, eq=True)
class VariableExpr(Expr):
    """Reference to a function parameter."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.VARIABLE_EXPR

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_variable_expr(self)

    def children(self) -> Tuple[ASTNode, ...]:
        return ()


@dataclass(frozen=True, eq=True)
class BinaryExpr(Expr):
    """Binary operation; `op` is always a key of the parser's precedence table."""
    op: str
    lhs: Expr
    rhs: Expr
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.BINARY_EXPR

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary_expr(self)

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.lhs, self.rhs)


@dataclass(frozen=True, eq=True)
class CallExpr(Expr):
    """Function call. Arity is checked by the backend, not here."""
    callee: str
    args: Tuple[Expr, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.CALL_EXPR

    def __post_init__(self):
        # Accept any sequence but store a tuple so the node stays immutable
        object.__setattr__(self, 'args', tuple(self.args))

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_call_expr(self)

    def children(self) -> Tuple[ASTNode, ...]:
        return self.args


# ============================================================================
# Top-level items
# ============================================================================

@dataclass(frozen=True, eq=True)
class Prototype(ASTNode):
    """Function signature: a name and its parameter names."""
    name: str
    params: Tuple[str, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.PROTOTYPE

    def __post_init__(self):
        object.__setattr__(self, 'params', tuple(self.params))

    @property
    def is_anonymous(self) -> bool:
        return self.name.startswith(ANONYMOUS_PREFIX)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_prototype(self)

    def children(self) -> Tuple[ASTNode, ...]:
        return ()


@dataclass(frozen=True, eq=True)
class Function(ASTNode):
    """Function definition."""
    prototype: Prototype
    body: Expr
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.FUNCTION

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_function(self)

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.prototype, self.body)


# A top-level unit as produced by the parser
TopLevel = Union[Function, Prototype, Expr]

# Names starting with this prefix are reserved for wrapped top-level expressions
ANONYMOUS_PREFIX = "_anon"


def make_anonymous_function(body: Expr, name: str = ANONYMOUS_PREFIX) -> Function:
    """Wrap a bare expression in a zero-parameter function."""
    return Function(Prototype(name, (), body.location), body, body.location)


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Yield every node of the tree in post-order (children before parent)."""
    for child in node.children():
        yield from walk(child)
    yield node


class SExpressionFormatter(ASTVisitor):
    """Renders a tree as an S-expression, e.g. `(+ a (* b c))`."""

    def format(self, node: ASTNode) -> str:
        return node.accept(self)

    def visit_number_expr(self, node: NumberExpr) -> str:
        return repr(node.value)

    def visit_variable_expr(self, node: VariableExpr) -> str:
        return node.name

    def visit_binary_expr(self, node: BinaryExpr) -> str:
        lhs = node.lhs.accept(self)
        rhs = node.rhs.accept(self)
        return f"({node.op} {lhs} {rhs})"

    def visit_call_expr(self, node: CallExpr) -> str:
        args = [arg.accept(self) for arg in node.args]
        return "(call " + " ".join([node.callee] + args) + ")"

    def visit_prototype(self, node: Prototype) -> str:
        return f"(extern {node.name} ({' '.join(node.params)}))"

    def visit_function(self, node: Function) -> str:
        proto = node.prototype
        body = node.body.accept(self)
        return f"(def {proto.name} ({' '.join(proto.params)}) {body})"
