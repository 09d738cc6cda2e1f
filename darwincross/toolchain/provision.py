"""
End-to-end provisioning of the Linux-to-macOS cross toolchain.

The pipeline is strictly sequential: each step depends on the filesystem
state the previous one left behind, and the first failure aborts the run.
Re-running from scratch is the recovery strategy, so nothing is resumed.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from darwincross.config.parser import ProvisionConfig
from darwincross.core.cache import ArtifactCache
from darwincross.core.process import CommandRunner
from darwincross.cross.descriptor import Descriptor, write_descriptor
from darwincross.cross.inputs import ProvisionInputs
from darwincross.cross.sdk import install_sdk, normalize_symlinks
from darwincross.toolchain.cctools import CctoolsBuilder
from darwincross.toolchain.layout import ToolchainLayout
from darwincross.toolchain.swift import install_bundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionResult:
    """What a successful run produced."""

    layout: ToolchainLayout
    descriptor: Descriptor
    descriptor_path: Path


class ToolchainProvisioner:
    """
    Assemble a cross toolchain from the three input archives.

    Example:
        >>> inputs = resolve_inputs(sys.argv[1:])
        >>> result = ToolchainProvisioner(inputs).run()
        >>> print(result.descriptor_path)
    """

    def __init__(
        self,
        inputs: ProvisionInputs,
        config: Optional[ProvisionConfig] = None,
        runner: Optional[CommandRunner] = None,
        cache: Optional[ArtifactCache] = None,
    ):
        """
        Initialize provisioner.

        Args:
            inputs: Validated, absolute input paths
            config: Provisioning settings (defaults if None)
            runner: External process runner (``run_command`` if None)
            cache: Artifact cache (``<destination>/cache`` if None)
        """
        self.inputs = inputs
        self.config = config or ProvisionConfig()
        self.runner = runner
        self.layout = ToolchainLayout.for_destination(inputs.destination, self.config)
        self.cache = cache or ArtifactCache(self.layout.cache_dir)

    def run(self) -> ProvisionResult:
        """
        Run every provisioning step in order.

        Raises:
            DarwinCrossError: Subclass identifying the failing step
        """
        layout = self.layout

        logger.info(f"Provisioning cross toolchain in {layout.root}")
        layout.recreate()

        builder = CctoolsBuilder(
            layout, self.cache, self.config.cctools, self.runner
        )
        cctools_archive = builder.fetch_source()

        install_sdk(self.inputs.sdk, layout.sdk_dir)

        bundles = self.config.bundles
        install_bundle(
            self.inputs.cross_compiler,
            layout.xctoolchain_dir,
            bundles.cross_compiler,
            scratch_parent=layout.destination,
        )
        install_bundle(
            self.inputs.native_toolchain,
            layout.xctoolchain_dir,
            bundles.native_toolchain,
            scratch_parent=layout.destination,
        )

        builder.build(cctools_archive)

        rewritten = normalize_symlinks(layout.sdk_dir)
        logger.info(f"Re-rooted {len(rewritten)} absolute symlink(s) in the SDK")

        descriptor = Descriptor.for_layout(layout, self.config)
        write_descriptor(descriptor, layout.descriptor_path)

        logger.info("Cross toolchain ready")
        return ProvisionResult(
            layout=layout,
            descriptor=descriptor,
            descriptor_path=layout.descriptor_path,
        )
