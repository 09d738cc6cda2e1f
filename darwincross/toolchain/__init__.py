"""
Toolchain assembly for darwincross.

This package lays out the cross toolchain tree, merges the Swift toolchain
bundles and builds the cctools linker suite. The end-to-end pipeline lives in
``darwincross.toolchain.provision``.
"""

from darwincross.toolchain.layout import ToolchainLayout
from darwincross.toolchain.swift import install_bundle
from darwincross.toolchain.cctools import (
    CctoolsBuilder,
    TextPatch,
    apply_patches,
    exclude_build_components,
)

__all__ = [
    "ToolchainLayout",
    "install_bundle",
    "CctoolsBuilder",
    "TextPatch",
    "apply_patches",
    "exclude_build_components",
]
