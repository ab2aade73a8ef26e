#!/usr/bin/env python3
"""
Main test runner for the tylang compiler.

Runs a quick smoke test of the whole pipeline, then the unittest suite
under tests/.
"""

import io
import os
import sys
import unittest

# Add the project root to the Python path
project_root = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, project_root)


def run_pipeline_smoke_test() -> bool:
    """Lex, parse, lower, optimize and run a small program."""

    print("🚀 tylang Compiler Test Suite")
    print("=" * 60)

    try:
        from tylang.lexer.lexer import tokenize_string
        from tylang.driver import CompilationSession, SessionConfig
        print("✅ All compiler modules imported successfully")
    except ImportError as e:
        print(f"❌ Failed to import compiler modules: {e}")
        print("   Install the runtime dependency with: pip install llvmlite")
        return False

    code = """
    # forward declaration, then the definitions
    extern cube(x)
    def volume(a b c) cube(a) + b * c
    def cube(x) x * x * x
    volume(2, 3, 4);
    """

    print("Testing simple compilation pipeline...")
    print(f"  🔧 Lexing... {len(tokenize_string(code))} tokens")

    output = io.StringIO()
    session = CompilationSession(SessionConfig(prompt=None, stream=output))
    results = session.evaluate(code)
    session.close()

    failed = [result for result in results if not result.ok]
    if failed:
        print("❌ Compilation pipeline test FAILED:")
        print(output.getvalue())
        return False

    value = results[-1].value
    if value != 20.0:
        print(f"❌ Compilation pipeline test FAILED: expected 20.0, got {value}")
        return False

    print(f"  🔧 Evaluated volume(2, 3, 4) = {value}")
    print("✅ Full compilation pipeline test PASSED")
    print()
    return True


def run_all_tests() -> bool:
    """Run all tylang compiler tests."""
    if not run_pipeline_smoke_test():
        return False

    suite = unittest.defaultTestLoader.discover(os.path.join(project_root, "tests"))
    result = unittest.TextTestRunner(verbosity=2).run(suite)

    print()
    if result.wasSuccessful():
        print("🎉 All tests PASSED!")
    else:
        print(f"❌ {len(result.failures)} failures, {len(result.errors)} errors")
    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
