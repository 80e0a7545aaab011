"""
LLVM Backend for Kaleidoscope.

Generates LLVM IR from the AST through the visitor interface. Every value
in the language is a double and every function has type
`double(double, ...)`, so no type information is needed.

Author: xwest
"""

import itertools
import logging
from typing import Dict, List, Optional

import llvmlite.ir as ll

from ..lexer.tokens import SourceLocation
from ..lexer.errors import KaleidoscopeError
from ..parser.ast_nodes import (
    ASTVisitor, NumberExpr, VariableExpr, BinaryExpr, CallExpr,
    Prototype, Function, TopLevel, Expr, ANONYMOUS_PREFIX, make_anonymous_function
)

logger = logging.getLogger(__name__)

DOUBLE = ll.DoubleType()


class CodegenError(KaleidoscopeError):
    """
    Semantic failure detected while generating code.

    Unknown names, arity mismatches and redefinitions are caught here
    rather than in the parser.
    """


# Backend error codes for categorization
CODEGEN_ERROR_CODES = {
    "C001": "Unknown variable name",
    "C002": "Unknown function referenced",
    "C003": "Incorrect number of arguments",
    "C004": "Function redefinition",
    "C005": "Unknown binary operator",
}


def _error(code: str, message: str, location: Optional[SourceLocation],
           help_text: Optional[str] = None) -> CodegenError:
    return CodegenError(message, location, code=code, help_text=help_text)


class LLVMCodeGenerator(ASTVisitor):
    """
    Visitor that lowers Kaleidoscope AST nodes into an llvmlite module.

    The module accumulates every function compiled so far. The table of
    named values holds the parameters of the function being compiled and
    is reset whenever a new function body starts.
    """

    def __init__(self, module_name: str = "kaleidoscope"):
        """
        Initialize the code generator.

        Args:
            module_name: Name of the generated LLVM module
        """
        self.module_name = module_name
        self.module = ll.Module(name=module_name)
        self.builder: Optional[ll.IRBuilder] = None
        self.named_values: Dict[str, ll.Argument] = {}
        self._generated_units: List[TopLevel] = []
        self._anon_counter = itertools.count()

    def generate(self, unit: TopLevel) -> ll.Function:
        """
        Generate code for one top-level unit.

        Bare expressions are wrapped in an anonymous zero-parameter function.
        If generation fails the module is rolled back to its state before
        the call, so earlier functions stay usable.

        Returns:
            The llvmlite function that was declared or defined

        Raises:
            CodegenError: On a semantic failure
        """
        if isinstance(unit, Expr):
            unit = self.wrap_expression(unit)

        try:
            result = unit.accept(self)
        except CodegenError:
            self._rollback()
            raise

        self._generated_units.append(unit)
        logger.debug("generated code for %s", result.name)
        return result

    def wrap_expression(self, expr: Expr) -> Function:
        """Wrap a bare expression in a uniquely named anonymous function."""
        name = f"{ANONYMOUS_PREFIX}{next(self._anon_counter)}"
        return make_anonymous_function(expr, name)

    def discard_last(self):
        """Drop the most recently generated unit from the module."""
        if self._generated_units:
            self._generated_units.pop()
        self._rollback()

    def _rollback(self):
        """Rebuild the module from the units that compiled successfully."""
        logger.debug("rolling back module %s", self.module_name)
        self.module = ll.Module(name=self.module_name)
        self.builder = None
        self.named_values = {}
        for unit in self._generated_units:
            unit.accept(self)

    # Expressions

    def visit_number_expr(self, node: NumberExpr) -> ll.Constant:
        return ll.Constant(DOUBLE, node.value)

    def visit_variable_expr(self, node: VariableExpr) -> ll.Value:
        value = self.named_values.get(node.name)
        if value is None:
            raise _error("C001", f"Unknown variable name '{node.name}'", node.location)
        return value

    def visit_binary_expr(self, node: BinaryExpr) -> ll.Value:
        lhs = node.lhs.accept(self)
        rhs = node.rhs.accept(self)

        if node.op == '+':
            return self.builder.fadd(lhs, rhs, 'addtmp')
        elif node.op == '-':
            return self.builder.fsub(lhs, rhs, 'subtmp')
        elif node.op == '*':
            return self.builder.fmul(lhs, rhs, 'multmp')
        elif node.op == '<':
            cmp = self.builder.fcmp_unordered('<', lhs, rhs, 'cmptmp')
            # Booleans are represented as 0.0 or 1.0
            return self.builder.uitofp(cmp, DOUBLE, 'booltmp')

        raise _error("C005", f"Unknown binary operator '{node.op}'", node.location,
                     help_text="The backend only implements '<', '+', '-' and '*'.")

    def visit_call_expr(self, node: CallExpr) -> ll.Value:
        callee = self.module.globals.get(node.callee)
        if not isinstance(callee, ll.Function):
            raise _error("C002", f"Unknown function referenced '{node.callee}'", node.location,
                         help_text="Define the function with 'def' or declare it with 'extern' first.")

        expected = len(callee.args)
        if expected != len(node.args):
            raise _error("C003",
                         f"Incorrect number of arguments passed to '{node.callee}': "
                         f"expected {expected}, got {len(node.args)}",
                         node.location)

        args = [arg.accept(self) for arg in node.args]
        return self.builder.call(callee, args, 'calltmp')

    # Top-level items

    def visit_prototype(self, node: Prototype) -> ll.Function:
        func_type = ll.FunctionType(DOUBLE, [DOUBLE] * len(node.params))

        existing = self.module.globals.get(node.name)
        if existing is None:
            func = ll.Function(self.module, func_type, node.name)
        elif not isinstance(existing, ll.Function):
            raise _error("C004", f"Redefinition of '{node.name}'", node.location)
        elif len(existing.args) != len(node.params):
            raise _error("C004",
                         f"Redefinition of function '{node.name}' with a different number of arguments",
                         node.location)
        else:
            func = existing

        if func.is_declaration:
            for arg, name in zip(func.args, node.params):
                if arg.name != name:
                    arg.name = name

        return func

    def visit_function(self, node: Function) -> ll.Function:
        # Names are scoped to the function being compiled
        self.named_values = {}

        func = node.prototype.accept(self)
        if not func.is_declaration:
            raise _error("C004", f"Redefinition of function '{node.prototype.name}'", node.location,
                         help_text="A function can be defined only once.")

        entry = func.append_basic_block('entry')
        self.builder = ll.IRBuilder(entry)

        for arg, name in zip(func.args, node.prototype.params):
            self.named_values[name] = arg

        retval = node.body.accept(self)
        self.builder.ret(retval)

        return func
