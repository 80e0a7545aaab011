"""
Kaleidoscope JIT Package.

Native compilation and execution of top-level units, plus the
read-compile-run driver.
"""

from .jit_compiler import KaleidoscopeJIT, EvaluationResult, UnitKind
from .driver import Driver, RunSummary, PROMPT, CONTINUATION_PROMPT

__all__ = ['KaleidoscopeJIT', 'EvaluationResult', 'UnitKind', 'Driver', 'RunSummary', 'PROMPT', 'CONTINUATION_PROMPT']
