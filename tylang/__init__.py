"""
tylang Compiler Package

A small expression language compiled to native code through LLVM and run
one top-level unit at a time.

Architecture:
    tylang/
    ├── lexer/           # Tokenization
    ├── parser/          # Precedence-climbing parser and AST
    ├── analyzer/        # Prototype table and lowering errors
    ├── ir/              # AST to LLVM IR lowering
    ├── backend/         # Verification and optimization
    ├── jit/             # MCJIT execution engine
    └── driver.py        # Read-eval loop and command line
"""

__version__ = "0.1.0"

from .lexer import Lexer
from .parser import Parser
from .analyzer import PrototypeTable
from .ir import IRGenerator
from .backend import LLVMBackend
from .jit import ExecutionEngine, OptimizationLevel
from .driver import CompilationSession, SessionConfig, UnitResult, UnitKind

__all__ = [
    # Core classes
    "Lexer",
    "Parser",
    "PrototypeTable",
    "IRGenerator",
    "LLVMBackend",
    "ExecutionEngine",
    "OptimizationLevel",

    # Driver
    "CompilationSession",
    "SessionConfig",
    "UnitResult",
    "UnitKind",

    # Version info
    "__version__",
]
