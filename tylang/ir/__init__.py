"""
tylang IR Package

Lowering of the AST into LLVM IR.
"""

from .ir_generator import IRGenerator, IRGenContext, DOUBLE

__all__ = ["IRGenerator", "IRGenContext", "DOUBLE"]
