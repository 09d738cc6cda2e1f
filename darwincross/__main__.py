"""
Entry point for running darwincross as a module.

Usage: python -m darwincross DEST CROSS_COMPILER NATIVE_TOOLCHAIN SDK
"""

from darwincross.cli.parser import main

if __name__ == "__main__":
    main()
