"""
Error handling for the tylang JIT.

Raised when committed code cannot be linked or run. Lookups of symbols that
cannot be resolved are reported here instead of letting the native linker
abort the process.
"""

from typing import List, Optional

from ..lexer.tokens import SourceLocation
from ..lexer.errors import CompilerError


class ExecutionError(CompilerError):
    """Exception raised when the execution engine cannot satisfy a request."""
    pass


class UnresolvedSymbolError(ExecutionError):
    """A symbol, or something it calls, has no definition anywhere."""

    def __init__(self, message: str, symbol: str, missing: Optional[List[str]] = None,
                 location: Optional[SourceLocation] = None, code: Optional[str] = "J001",
                 help_text: Optional[str] = None):
        super().__init__(message, location, code, help_text)
        self.symbol = symbol
        self.missing = missing or []


class ModuleVerificationError(ExecutionError):
    """The LLVM verifier rejected a module before it reached the engine."""
    pass


JIT_ERROR_CODES = {
    "J001": "Unresolved symbol",
    "J002": "Unknown module handle",
    "J003": "Module failed verification",
    "J004": "Duplicate symbol definition",
}


def create_unresolved_symbol_error(symbol: str, missing: List[str],
                                   location: Optional[SourceLocation] = None) -> UnresolvedSymbolError:
    """Create an error for a symbol that cannot be linked."""
    if not missing or missing == [symbol]:
        message = f"Unresolved symbol '{symbol}'"
        help_text = f"Define it with 'def {symbol}(...)' or register a host function."
    else:
        message = f"Cannot run '{symbol}': no definition for {', '.join(sorted(missing))}"
        help_text = "Every function reachable from a call needs a definition."
    return UnresolvedSymbolError(message, symbol, missing, location, help_text=help_text)


def create_unknown_handle_error(handle) -> ExecutionError:
    return ExecutionError(f"Module {handle} is not owned by this engine", code="J002")


def create_verification_error(module_name: str, details: str) -> ModuleVerificationError:
    return ModuleVerificationError(
        f"Module '{module_name}' failed verification: {details.strip()}",
        code="J003",
    )


def create_duplicate_symbol_error(symbol: str) -> ExecutionError:
    return ExecutionError(f"Symbol '{symbol}' is already defined in the engine", code="J004")
