"""
Cross-compilation support for darwincross.

This package validates the provisioning inputs, installs the target SDK and
writes the destination descriptor consumed by the downstream build.
"""

from darwincross.cross.inputs import ProvisionInputs, resolve_inputs
from darwincross.cross.sdk import install_sdk, normalize_symlinks
from darwincross.cross.descriptor import Descriptor, write_descriptor

__all__ = [
    "ProvisionInputs",
    "resolve_inputs",
    "install_sdk",
    "normalize_symlinks",
    "Descriptor",
    "write_descriptor",
]
