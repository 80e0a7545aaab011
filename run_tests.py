#!/usr/bin/env python3
"""
Main test runner for the Kaleidoscope compiler tests.

Author: xwest
"""

import sys
import os
import unittest

# Add the project root to the Python path
project_root = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, project_root)


def run_all_tests():
    """Run all Kaleidoscope compiler tests."""

    print("Kaleidoscope Compiler Test Suite")
    print("=" * 60)

    # Test if basic imports work
    try:
        from kaleidoscope.lexer import Lexer
        from kaleidoscope.parser import Parser
        from kaleidoscope.backend import LLVMCodeGenerator
        from kaleidoscope.jit import KaleidoscopeJIT
    except ImportError as e:
        print(f"Failed to import compiler modules: {e}")
        return False

    print("All compiler modules imported successfully")
    print()

    loader = unittest.TestLoader()
    suite = loader.discover(os.path.join(project_root, 'tests'), pattern='test_*.py')

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    print()
    print("=" * 60)
    print(f"Tests run: {result.testsRun}")
    print(f"Failures: {len(result.failures)}")
    print(f"Errors: {len(result.errors)}")
    print(f"Skipped: {len(result.skipped)}")

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
