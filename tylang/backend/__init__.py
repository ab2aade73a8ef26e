"""
tylang Backend Package

Module creation, verification and optimization on top of llvmlite.
"""

from .llvm_backend import LLVMBackend

__all__ = ["LLVMBackend"]
