"""
Pytest configuration and shared fixtures for darwincross tests.
"""

import logging
import pytest
from pathlib import Path

from darwincross.config.parser import ProvisionConfig
from darwincross.cross.inputs import ProvisionInputs
from tests.fixtures.archives import (
    FakeBuildRunner,
    make_cctools_archive,
    make_cross_compiler_archive,
    make_native_toolchain_archive,
    make_sdk_archive,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo logging.basicConfig(force=True) calls made by the CLI."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def config() -> ProvisionConfig:
    return ProvisionConfig()


@pytest.fixture
def input_archives(tmp_path) -> dict:
    """Create the three input archives under tmp_path/inputs."""
    inputs_dir = tmp_path / "inputs"
    return {
        "cross_compiler": make_cross_compiler_archive(
            inputs_dir / "swift-5.9-RELEASE-ubuntu22.04.tar.gz"
        ),
        "native_toolchain": make_native_toolchain_archive(
            inputs_dir / "swift-5.9-RELEASE-osx.tar.gz"
        ),
        "sdk": make_sdk_archive(inputs_dir / "MacOSX.sdk.tar.xz"),
    }


@pytest.fixture
def destination(tmp_path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def provision_inputs(destination, input_archives) -> ProvisionInputs:
    return ProvisionInputs(
        destination=destination,
        cross_compiler=input_archives["cross_compiler"],
        native_toolchain=input_archives["native_toolchain"],
        sdk=input_archives["sdk"],
    )


@pytest.fixture
def seeded_cache(destination, config) -> Path:
    """Pre-populate the destination cache with a cctools source archive."""
    return make_cctools_archive(
        destination / "cache" / config.cctools.cache_key, config.cctools.revision
    )


@pytest.fixture
def fake_runner() -> FakeBuildRunner:
    return FakeBuildRunner()
