"""
Destination descriptor for the downstream build system.

The descriptor tells SwiftPM (``swift build --destination <file>``) where the
SDK and the cross tools live and which flags to pass to each compiler.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from darwincross.config.parser import ProvisionConfig
from darwincross.core.exceptions import FilesystemError
from darwincross.core.filesystem import atomic_write
from darwincross.toolchain.layout import ToolchainLayout

logger = logging.getLogger(__name__)

DESCRIPTOR_VERSION = 1


@dataclass(frozen=True)
class Descriptor:
    """Contents of ``macos-destination.json``."""

    sdk: Path
    toolchain_bin_dir: Path
    target: str
    dynamic_library_extension: str = "dylib"
    extra_cc_flags: List[str] = field(default_factory=list)
    extra_swiftc_flags: List[str] = field(default_factory=list)
    extra_cpp_flags: List[str] = field(default_factory=list)
    version: int = DESCRIPTOR_VERSION

    @classmethod
    def for_layout(
        cls, layout: ToolchainLayout, config: ProvisionConfig
    ) -> "Descriptor":
        """
        Build the descriptor for a provisioned layout.

        ``-tools-directory`` and the binary directory are emitted as two
        separate list elements, ahead of any configured swiftc flags.
        """
        flags = config.descriptor
        return cls(
            sdk=layout.sdk_dir,
            toolchain_bin_dir=layout.bin_dir,
            target=config.target,
            dynamic_library_extension=config.dynamic_library_extension,
            extra_cc_flags=list(flags.extra_cc_flags),
            extra_swiftc_flags=["-tools-directory", str(layout.bin_dir)]
            + list(flags.extra_swiftc_flags),
            extra_cpp_flags=list(flags.extra_cpp_flags),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "sdk": str(self.sdk),
            "toolchain-bin-dir": str(self.toolchain_bin_dir),
            "target": self.target,
            "dynamic-library-extension": self.dynamic_library_extension,
            "extra-cc-flags": list(self.extra_cc_flags),
            "extra-swiftc-flags": list(self.extra_swiftc_flags),
            "extra-cpp-flags": list(self.extra_cpp_flags),
        }

    def render(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"


def write_descriptor(descriptor: Descriptor, path: Path) -> Path:
    """
    Write the descriptor atomically.

    Raises:
        FilesystemError: If the file cannot be written
    """
    try:
        atomic_write(path, descriptor.render())
        path.chmod(0o644)
    except OSError as e:
        raise FilesystemError(f"Failed to write descriptor {path}: {e}") from e

    logger.info(f"Wrote destination descriptor to {path}")
    return path
