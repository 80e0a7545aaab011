"""
LLVM backend tests for Kaleidoscope.

Checks the generated IR and the semantic errors raised during code
generation. Nothing here executes native code.

Author: xwest
"""

import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import llvmlite.ir as ll

from kaleidoscope.parser import parse_string, BinaryExpr, NumberExpr
from kaleidoscope.backend import LLVMCodeGenerator, CodegenError


class TestLLVMCodeGenerator(unittest.TestCase):

    def setUp(self):
        self.codegen = LLVMCodeGenerator()

    def _generate(self, source):
        """Generate every unit of `source`, returning the last function."""
        result = None
        for unit in parse_string(source):
            result = self.codegen.generate(unit)
        return result

    def _assertCodegenError(self, source, code):
        with self.assertRaises(CodegenError) as ctx:
            self._generate(source)
        self.assertEqual(ctx.exception.code, code, str(ctx.exception))
        return ctx.exception

    def test_definition(self):
        func = self._generate("def test(x) (1+2+x)*(x+(1+2))")

        self.assertIsInstance(func, ll.Function)
        self.assertEqual(func.name, "test")
        self.assertFalse(func.is_declaration)
        self.assertEqual([arg.name for arg in func.args], ["x"])

        ir = str(self.codegen.module)
        self.assertIn('define double @"test"(double %"x")', ir)
        self.assertIn("fadd double", ir)
        self.assertIn("fmul double", ir)
        self.assertIn("ret double", ir)

    def test_all_operators(self):
        self._generate("def ops(a b) a + b - a * b < b")
        ir = str(self.codegen.module)
        for instruction in ["fadd", "fsub", "fmul", "fcmp ult", "uitofp"]:
            with self.subTest(instruction=instruction):
                self.assertIn(instruction, ir)

    def test_extern_is_a_declaration(self):
        func = self._generate("extern sin(arg)")
        self.assertTrue(func.is_declaration)
        self.assertIn('declare double @"sin"(double %"arg")', str(self.codegen.module))

    def test_expressions_are_wrapped(self):
        first = self._generate("1 + 2")
        second = self._generate("3")
        self.assertEqual(first.name, "_anon0")
        self.assertEqual(second.name, "_anon1")
        self.assertEqual(len(first.args), 0)

    def test_call_of_defined_function(self):
        self._generate("def sq(x) x * x")
        func = self._generate("sq(4)")
        self.assertIn('call double @"sq"', str(func))

    def test_extern_then_definition(self):
        self._generate("extern f(a b); def f(x y) x - y")
        func = self.codegen.module.globals["f"]
        self.assertFalse(func.is_declaration)
        self.assertEqual([arg.name for arg in func.args], ["x", "y"])

    def test_extern_after_definition(self):
        self._generate("def f(x) x; extern f(y)")
        self.assertFalse(self.codegen.module.globals["f"].is_declaration)

    def test_unknown_variable(self):
        error = self._assertCodegenError("def f(x) y", "C001")
        self.assertIn("'y'", error.message)
        self.assertEqual(error.location.column, 10)

    def test_parameters_do_not_leak(self):
        self._generate("def f(x) x")
        self._assertCodegenError("def g(y) x", "C001")

    def test_unknown_function(self):
        self._assertCodegenError("g(1)", "C002")

    def test_argument_count(self):
        self._generate("def f(x) x")
        error = self._assertCodegenError("f(1, 2)", "C003")
        self.assertIn("expected 1, got 2", error.message)

    def test_redefinition(self):
        self._generate("def f(x) x")
        self._assertCodegenError("def f(x) x + 1", "C004")

    def test_redeclaration_with_other_arity(self):
        self._generate("def f(x) x")
        self._assertCodegenError("extern f(a b)", "C004")

    def test_unknown_operator(self):
        units = parse_string("1 / 2", binop_precedence={'/': 40})
        with self.assertRaises(CodegenError) as ctx:
            self.codegen.generate(units[0])
        self.assertEqual(ctx.exception.code, "C005")

    def test_unknown_operator_from_tree(self):
        with self.assertRaises(CodegenError):
            self.codegen.generate(BinaryExpr("%", NumberExpr(1.0), NumberExpr(2.0)))


class TestRollback(unittest.TestCase):
    """A failed unit leaves the module as it was."""

    def setUp(self):
        self.codegen = LLVMCodeGenerator()
        for unit in parse_string("extern cos(x); def sq(x) x * x"):
            self.codegen.generate(unit)
        self.before = str(self.codegen.module)

    def test_failed_definition_is_removed(self):
        with self.assertRaises(CodegenError):
            self.codegen.generate(parse_string("def broken(x) y")[0])

        self.assertNotIn("broken", self.codegen.module.globals)
        self.assertEqual(str(self.codegen.module), self.before)

    def test_failed_redefinition_keeps_original(self):
        with self.assertRaises(CodegenError):
            self.codegen.generate(parse_string("def sq(x) x + x")[0])

        self.assertEqual(str(self.codegen.module), self.before)

    def test_module_still_usable_after_failure(self):
        with self.assertRaises(CodegenError):
            self.codegen.generate(parse_string("nope()")[0])

        func = self.codegen.generate(parse_string("sq(cos(1))")[0])
        self.assertIn('call double @"cos"', str(func))

    def test_discard_last(self):
        self.codegen.generate(parse_string("def extra() 1")[0])
        self.codegen.discard_last()
        self.assertEqual(str(self.codegen.module), self.before)


if __name__ == '__main__':
    unittest.main()
