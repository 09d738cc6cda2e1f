"""
Entry point for running the darwincross CLI as a module.

Usage: python -m darwincross.cli DEST CROSS_COMPILER NATIVE_TOOLCHAIN SDK
"""

from .parser import main

if __name__ == "__main__":
    main()
