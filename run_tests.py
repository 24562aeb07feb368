#!/usr/bin/env python3
"""
Simple test runner for the EPIC image downloader tests.

This script runs the test suite with pytest and provides a summary of results.
"""

import sys
import subprocess
from pathlib import Path


def run_tests():
    """Run all tests and return results"""
    test_dir = Path(__file__).parent / "tests"

    if not test_dir.exists():
        print("Error: tests directory not found")
        return False

    test_files = list(test_dir.glob("test_*.py"))

    if not test_files:
        print("Error: no test files found")
        return False

    print("EPIC Image Downloader Test Suite")
    print("=" * 40)
    print(f"Found {len(test_files)} test files")
    print()

    result = subprocess.run([
        sys.executable, "-m", "pytest",
        str(test_dir),
        "-v",
        "--tb=short"
    ], capture_output=True, text=True)

    print("Test Results:")
    print(result.stdout)

    if result.stderr:
        print("Warnings/Errors:")
        print(result.stderr)

    return result.returncode == 0


def main():
    """Main function"""
    print(f"Python executable: {sys.executable}")
    print()

    if run_tests():
        print("✓ All tests passed!")
        sys.exit(0)
    else:
        print("✗ Some tests failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
