"""
Kaleidoscope JIT Compiler
=========================

Compiles top-level units to native code with llvmlite's MCJIT engine and
runs top-level expressions immediately.

Definitions and externs accumulate in one LLVM module. A bare expression
is wrapped in an anonymous zero-argument function, the module is
verified and compiled, and the function is called through ctypes.
"""

import ctypes
import ctypes.util
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import llvmlite.binding as llvm
import llvmlite.ir as ll

from ..backend.llvm_backend import LLVMCodeGenerator, CodegenError
from ..parser.ast_nodes import Expr, Function, Prototype, TopLevel

logger = logging.getLogger(__name__)

# Failures detected while turning the module into machine code
JIT_ERROR_CODES = {
    "J001": "Invalid LLVM module",
    "J002": "Unresolved external function",
}


class UnitKind(Enum):
    """Kinds of top-level unit the JIT accepts"""
    DEFINITION = "definition"
    EXTERN = "extern"
    EXPRESSION = "expression"


@dataclass
class EvaluationResult:
    """Result of compiling (and possibly running) one top-level unit"""
    kind: UnitKind
    name: str
    ir: str
    value: Optional[float] = None


class KaleidoscopeJIT:
    """
    LLVM-based JIT for Kaleidoscope.

    Owns the code generator, so every unit evaluated through one instance
    sees the functions defined before it.
    """

    def __init__(self, target_triple: Optional[str] = None):
        """
        Initialize the JIT.

        Args:
            target_triple: Target triple (e.g., "x86_64-pc-linux-gnu"),
                defaults to the host process triple
        """
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()

        # Make libm (sin, cos, ...) available to `extern` declarations
        libm = ctypes.util.find_library("m")
        if libm is not None:
            llvm.load_library_permanently(libm)

        self.target_triple = target_triple or llvm.get_process_triple()
        target = llvm.Target.from_triple(self.target_triple)
        self.target_machine = target.create_target_machine()
        self.codegen = LLVMCodeGenerator()

        logger.debug("JIT initialized for %s", self.target_triple)

    @property
    def module_ir(self) -> str:
        """Textual LLVM IR of everything compiled so far."""
        return str(self.codegen.module)

    def evaluate(self, unit: TopLevel) -> EvaluationResult:
        """
        Compile a unit, running it if it is a bare expression.

        Raises:
            CodegenError: If the unit is semantically invalid
        """
        if isinstance(unit, Function):
            kind = UnitKind.DEFINITION
        elif isinstance(unit, Prototype):
            kind = UnitKind.EXTERN
        elif isinstance(unit, Expr):
            kind = UnitKind.EXPRESSION
            unit = self.codegen.wrap_expression(unit)
        else:
            raise TypeError(f"Cannot evaluate {type(unit).__name__}")

        func = self.codegen.generate(unit)
        llvm_module = self._compile()
        result = EvaluationResult(kind, func.name, str(func))

        if kind == UnitKind.EXPRESSION:
            self._check_externals()
            result.value = self._run(llvm_module, func.name)
            logger.debug("%s returned %r", func.name, result.value)

        return result

    def _compile(self) -> llvm.ModuleRef:
        """Parse and verify the accumulated module."""
        module = self.codegen.module
        module.triple = self.target_triple
        module.data_layout = str(self.target_machine.target_data)

        try:
            llvm_module = llvm.parse_assembly(str(module))
            llvm_module.verify()
        except RuntimeError as e:
            logger.debug("rejected IR:\n%s", module)
            self.codegen.discard_last()
            raise CodegenError(f"LLVM module verification failed: {e}", code="J001") from e

        return llvm_module

    def _check_externals(self):
        """
        Make sure every called declaration resolves to a host symbol.

        Running code that calls an unresolved symbol would jump to a null
        address, so the pending expression is discarded instead.
        """
        for func in self.codegen.module.functions:
            for block in func.blocks:
                for instr in block.instructions:
                    if not isinstance(instr, ll.CallInstr) or not instr.callee.is_declaration:
                        continue
                    name = instr.callee.name
                    if not llvm.address_of_symbol(name):
                        self.codegen.discard_last()
                        raise CodegenError(
                            f"Unresolved external function '{name}' called from '{func.name}'",
                            code="J002",
                            help_text=f"Define '{name}' with 'def', or declare a function the host provides.",
                        )

    def _run(self, llvm_module: llvm.ModuleRef, name: str) -> float:
        """Compile the module to machine code and call `name()`."""
        with llvm.create_mcjit_compiler(llvm_module, self.target_machine) as engine:
            engine.finalize_object()
            engine.run_static_constructors()

            address = engine.get_function_address(name)
            cfunc = ctypes.CFUNCTYPE(ctypes.c_double)(address)
            return cfunc()
