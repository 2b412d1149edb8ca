#!/usr/bin/env python3
"""
Main entry point for code-gate.

Usage:
    python main.py review [COMMIT]    # Review staged changes or a commit
    python main.py hook               # Pre-commit hook entry
    python main.py init               # Write a default config and install the hook
"""
import sys

from code_gate.cli import main

if __name__ == "__main__":
    sys.exit(main())
