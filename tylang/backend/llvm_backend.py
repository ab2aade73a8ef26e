"""
LLVM Backend for tylang.

Creates the llvmlite modules the IR generator fills in, then turns them into
verified and optimized ``ModuleRef`` objects ready for the execution engine.
"""

from typing import Optional

import llvmlite.binding as llvm
import llvmlite.ir as ll

from ..jit.jit_compiler import OptimizationLevel, initialize_llvm
from ..jit.errors import create_verification_error


class LLVMBackend:
    """
    LLVM backend for tylang.

    Handles:
    - Module creation for the host target
    - Verification
    - Function optimization passes
    """

    def __init__(self, optimization_level: OptimizationLevel = OptimizationLevel.O2,
                 target_triple: Optional[str] = None):
        """
        Initialize the LLVM backend.

        Args:
            optimization_level: Pass pipeline to run on every defined function
            target_triple: Target triple (e.g., "x86_64-pc-linux-gnu"), host if omitted
        """
        initialize_llvm()

        self.optimization_level = optimization_level
        self.target_triple = target_triple or llvm.get_default_triple()

        target = llvm.Target.from_triple(self.target_triple)
        self.target_machine = target.create_target_machine(opt=optimization_level.value)
        self.data_layout = str(self.target_machine.target_data)

    def new_module(self, name: str) -> ll.Module:
        """Create an empty module for the configured target."""
        module = ll.Module(name=name)
        module.triple = self.target_triple
        module.data_layout = self.data_layout
        return module

    def compile_module(self, module: ll.Module) -> llvm.ModuleRef:
        """
        Parse, verify and optimize a module built with llvmlite.ir.

        Raises:
            ModuleVerificationError: If LLVM rejects the module
        """
        try:
            llvm_module = llvm.parse_assembly(str(module))
            llvm_module.verify()
        except RuntimeError as e:
            raise create_verification_error(module.name, str(e)) from e

        llvm_module.name = module.name
        self.optimize(llvm_module)
        return llvm_module

    def optimize(self, llvm_module: llvm.ModuleRef) -> llvm.ModuleRef:
        """
        Run the function simplification pipeline (instruction combining,
        reassociation, GVN, CFG simplification) over each defined function.
        """
        if self.optimization_level == OptimizationLevel.O0:
            return llvm_module

        tuning = llvm.create_pipeline_tuning_options(speed_level=self.optimization_level.value)
        pass_builder = llvm.create_pass_builder(self.target_machine, tuning)

        function_passes = llvm.create_new_function_pass_manager()
        function_passes.add_instruction_combine_pass()
        function_passes.add_reassociate_pass()
        function_passes.add_new_gvn_pass()
        function_passes.add_simplify_cfg_pass()

        for function in llvm_module.functions:
            if not function.is_declaration:
                function_passes.run(function, pass_builder)

        return llvm_module
