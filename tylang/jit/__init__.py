"""
tylang JIT Package

MCJIT execution engine used to run top-level expressions as they are typed.
"""

from .jit_compiler import ExecutionEngine, ModuleHandle, OptimizationLevel, initialize_llvm
from .errors import (
    ExecutionError, UnresolvedSymbolError, ModuleVerificationError, JIT_ERROR_CODES,
)

__all__ = [
    "ExecutionEngine", "ModuleHandle", "OptimizationLevel", "initialize_llvm",
    "ExecutionError", "UnresolvedSymbolError", "ModuleVerificationError",
    "JIT_ERROR_CODES",
]
