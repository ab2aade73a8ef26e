"""
tylang JIT Compiler
===================

Thin wrapper around an LLVM MCJIT execution engine.

Modules are committed one at a time as the session produces them. A module
that calls something nobody has defined yet is kept pending instead of being
handed to MCJIT, whose linker would otherwise abort the whole process; it is
linked as soon as the missing definitions arrive.
"""

import ctypes
from typing import Callable, Dict, List, Set, Tuple
from dataclasses import dataclass
from enum import Enum

import llvmlite.binding as llvm

from .errors import (
    create_duplicate_symbol_error, create_unknown_handle_error,
    create_unresolved_symbol_error,
)


class OptimizationLevel(Enum):
    """JIT optimization levels"""
    O0 = 0  # No optimization (fast compilation)
    O1 = 1  # Basic optimization
    O2 = 2  # Standard optimization (default)
    O3 = 3  # Aggressive optimization (slow compilation)


_llvm_initialized = False


def initialize_llvm() -> None:
    """Initialize the native target once per process."""
    global _llvm_initialized
    if _llvm_initialized:
        return
    try:
        llvm.initialize()
    except RuntimeError as e:
        # Current llvmlite initializes the core itself and rejects the call
        if "deprecated" not in str(e):
            raise
    llvm.initialize_native_target()
    llvm.initialize_native_asmprinter()
    _llvm_initialized = True


def _called_functions(module: llvm.ModuleRef) -> Set[str]:
    """Names of every function called from a body defined in ``module``."""
    called = set()
    for function in module.functions:
        if function.is_declaration:
            continue
        for block in function.blocks:
            for instruction in block.instructions:
                if instruction.opcode == "call":
                    # The callee is the last operand of a call
                    called.add(list(instruction.operands)[-1].name)
    return called


@dataclass(frozen=True)
class ModuleHandle:
    """Token returned by add_module(); needed to remove the module again."""
    module_id: int
    name: str
    defined: Tuple[str, ...]
    declared: Tuple[str, ...]

    def __str__(self) -> str:
        return f"#{self.module_id} ({self.name})"


class ExecutionEngine:
    """
    Owns one MCJIT engine and the modules committed to it.

    Not thread-safe; every session creates its own engine. Host functions
    are registered with LLVM's process-wide symbol table, so they are
    visible to every engine in the process.
    """

    def __init__(self, optimization_level: OptimizationLevel = OptimizationLevel.O2):
        initialize_llvm()

        self.optimization_level = optimization_level
        target = llvm.Target.from_default_triple()
        self.target_machine = target.create_target_machine(opt=optimization_level.value)

        backing_module = llvm.parse_assembly("")
        self._engine = llvm.create_mcjit_compiler(backing_module, self.target_machine)

        self._next_id = 0
        self._linked: Dict[int, Tuple[ModuleHandle, llvm.ModuleRef]] = {}
        self._pending: Dict[int, Tuple[ModuleHandle, llvm.ModuleRef]] = {}
        self._symbols: Dict[str, int] = {}  # defined name -> module id
        self._host_functions: Dict[str, object] = {}

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def add_module(self, module: llvm.ModuleRef) -> ModuleHandle:
        """
        Commit a verified module.

        The module is linked right away if every declaration its bodies call
        can be resolved, otherwise it waits until it can. Declarations nothing
        calls never hold it back.

        Raises:
            ExecutionError: If it defines a symbol the engine already has
        """
        defined = tuple(fn.name for fn in module.functions if not fn.is_declaration)
        called = _called_functions(module)
        declared = tuple(
            fn.name for fn in module.functions if fn.is_declaration and fn.name in called
        )

        for name in defined:
            if name in self._symbols or name in self._pending_definitions():
                raise create_duplicate_symbol_error(name)

        self._next_id += 1
        handle = ModuleHandle(self._next_id, module.name, defined, declared)
        self._pending[handle.module_id] = (handle, module)
        self._link_ready()
        return handle

    def remove_module(self, handle: ModuleHandle) -> None:
        """Take a module and its symbols back out of the engine."""
        if handle.module_id in self._pending:
            del self._pending[handle.module_id]
            return

        if handle.module_id not in self._linked:
            raise create_unknown_handle_error(handle)

        _, module = self._linked.pop(handle.module_id)
        self._engine.remove_module(module)
        for name in handle.defined:
            self._symbols.pop(name, None)

    def is_pending(self, handle: ModuleHandle) -> bool:
        return handle.module_id in self._pending

    def pending_modules(self) -> List[ModuleHandle]:
        return [handle for handle, _ in self._pending.values()]

    def _pending_definitions(self) -> Dict[str, int]:
        return {
            name: module_id
            for module_id, (handle, _) in self._pending.items()
            for name in handle.defined
        }

    def _is_external(self, name: str) -> bool:
        return bool(llvm.address_of_symbol(name))

    def _link_ready(self) -> None:
        """
        Link every pending module whose declarations all resolve.

        Starts from all pending modules and drops the ones that depend on a
        name nobody provides until nothing changes, so modules that call each
        other are linked together.
        """
        ready = set(self._pending)
        changed = True
        while changed:
            changed = False
            provided = set(self._symbols)
            for module_id in ready:
                provided.update(self._pending[module_id][0].defined)
            for module_id in list(ready):
                handle = self._pending[module_id][0]
                if any(name not in provided and not self._is_external(name)
                       for name in handle.declared):
                    ready.discard(module_id)
                    changed = True

        if not ready:
            return

        for module_id in sorted(ready):
            handle, module = self._pending.pop(module_id)
            self._engine.add_module(module)
            self._linked[module_id] = (handle, module)
            for name in handle.defined:
                self._symbols[name] = module_id
        self._engine.finalize_object()

    def _missing_symbols(self, name: str) -> List[str]:
        """Names reachable from ``name`` that have no definition anywhere."""
        pending = self._pending_definitions()
        missing: Set[str] = set()
        visited: Set[str] = set()
        stack = [name]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            if current in self._symbols or (current != name and self._is_external(current)):
                continue
            module_id = pending.get(current)
            if module_id is None:
                missing.add(current)
                continue
            stack.extend(self._pending[module_id][0].declared)
        return sorted(missing)

    # ------------------------------------------------------------------
    # Symbols and execution
    # ------------------------------------------------------------------

    def find_symbol(self, name: str) -> int:
        """
        Return the native address of ``name``.

        Raises:
            UnresolvedSymbolError: If it, or anything it calls, is undefined
        """
        if name in self._symbols:
            return self._engine.get_function_address(name)

        if name not in self._pending_definitions():
            address = llvm.address_of_symbol(name)
            if address:
                return address

        raise create_unresolved_symbol_error(name, self._missing_symbols(name))

    def run_function(self, name: str) -> float:
        """Call a nullary function returning double and return its result."""
        address = self.find_symbol(name)
        function = ctypes.CFUNCTYPE(ctypes.c_double)(address)
        return function()

    def register_host_function(self, name: str, function: Callable[..., float], arity: int) -> None:
        """
        Make a Python callable available to compiled code as
        ``double name(double, ...)``; declare it with 'extern' to call it.
        """
        callback_type = ctypes.CFUNCTYPE(ctypes.c_double, *([ctypes.c_double] * arity))
        callback = callback_type(function)
        self._host_functions[name] = callback
        llvm.add_symbol(name, ctypes.cast(callback, ctypes.c_void_p).value)
        self._link_ready()

    def close(self) -> None:
        for module_id in list(self._linked):
            handle, _ = self._linked[module_id]
            self.remove_module(handle)
        self._pending.clear()
