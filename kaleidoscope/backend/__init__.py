"""
Kaleidoscope Backend Package.

Lowers the AST to LLVM IR with llvmlite.

Author: xwest
"""

from .llvm_backend import LLVMCodeGenerator, CodegenError

__all__ = ['LLVMCodeGenerator', 'CodegenError']
