"""
Tests for the end-to-end provisioning pipeline.

External builds are simulated with FakeBuildRunner. Unless a test exercises
the download, the cctools source archive is pre-seeded in the cache.
"""

import json
import os
import pytest
import responses

from darwincross.core.exceptions import CorruptArchiveError, DownloadError
from darwincross.cross.inputs import ProvisionInputs
from darwincross.toolchain.provision import ToolchainProvisioner
from tests.fixtures.archives import FakeBuildRunner, make_cctools_archive


@pytest.fixture
def provisioner(provision_inputs, config, fake_runner, seeded_cache):
    return ToolchainProvisioner(provision_inputs, config, runner=fake_runner)


class TestToolchainProvisioner:
    def test_full_run(self, provisioner, destination):
        result = provisioner.run()
        layout = result.layout

        assert (layout.sdk_dir / "usr" / "include" / "stdio.h").is_file()
        assert (layout.bin_dir / "swift-frontend").is_file()
        assert (layout.bin_dir / "x86_64-apple-darwin-ld").is_file()
        assert os.readlink(layout.bin_dir / "ld") == "x86_64-apple-darwin-ld"
        assert os.access(layout.bin_dir / "dsymutil", os.X_OK)
        assert (
            layout.usr_dir / "lib" / "swift" / "macosx" / "libswiftCore.dylib"
        ).is_file()
        assert (
            layout.usr_dir / "lib" / "swift_static" / "macosx" / "libswiftCore.a"
        ).is_file()
        # Linux compiler binaries are not replaced by the macOS bundle
        assert (layout.bin_dir / "swift-frontend").read_text() == "#!/bin/sh\n"

        # No scratch directories left behind
        assert sorted(p.name for p in destination.iterdir()) == [
            "cache",
            "cross-toolchain",
        ]

    def test_sdk_symlinks_rerooted(self, provisioner):
        layout = provisioner.run().layout
        lib = layout.sdk_dir / "usr" / "lib"

        assert os.readlink(lib / "libSystem.dylib") == f"{layout.sdk_dir}/usr/lib/libc.dylib"
        assert (lib / "libSystem.dylib").exists()
        assert os.readlink(lib / "libm.dylib") == "libc.dylib"

    def test_descriptor_contents(self, provisioner, destination):
        result = provisioner.run()

        data = json.loads(result.descriptor_path.read_text())
        assert result.descriptor_path == (
            destination / "cross-toolchain" / "macos-destination.json"
        )
        assert data["sdk"] == str(destination / "cross-toolchain" / "MacOSX.sdk")
        assert data["toolchain-bin-dir"] == str(result.layout.bin_dir)
        assert data["extra-swiftc-flags"] == ["-tools-directory", str(result.layout.bin_dir)]
        assert data == result.descriptor.to_dict()

    def test_rerun_is_reproducible(self, provision_inputs, config, seeded_cache):
        first = ToolchainProvisioner(
            provision_inputs, config, runner=FakeBuildRunner()
        ).run()
        descriptor_bytes = first.descriptor_path.read_bytes()
        stale = first.layout.sdk_dir / "stale.h"
        stale.write_text("left over")

        second = ToolchainProvisioner(
            provision_inputs, config, runner=FakeBuildRunner()
        ).run()

        assert second.descriptor_path.read_bytes() == descriptor_bytes
        assert not stale.exists()

    @responses.activate
    def test_cctools_downloaded_once_across_runs(
        self, provision_inputs, config, tmp_path
    ):
        body = make_cctools_archive(
            tmp_path / "upstream.tar.gz", config.cctools.revision
        ).read_bytes()
        responses.add(responses.GET, config.cctools.url, body=body)

        for _ in range(2):
            ToolchainProvisioner(
                provision_inputs, config, runner=FakeBuildRunner()
            ).run()

        assert len(responses.calls) == 1

    @responses.activate
    def test_download_failure_aborts_before_build(
        self, provision_inputs, config, fake_runner, destination
    ):
        responses.add(responses.GET, config.cctools.url, status=404)

        with pytest.raises(DownloadError):
            ToolchainProvisioner(provision_inputs, config, runner=fake_runner).run()

        assert fake_runner.commands == []
        assert not (destination / "cache" / config.cctools.cache_key).exists()
        assert not (destination / "cross-toolchain" / "macos-destination.json").exists()

    def test_corrupt_sdk_aborts(
        self, provision_inputs, config, fake_runner, seeded_cache, tmp_path
    ):
        bad_sdk = tmp_path / "inputs" / "broken.tar.xz"
        bad_sdk.write_bytes(b"not an archive")
        inputs = ProvisionInputs(
            destination=provision_inputs.destination,
            cross_compiler=provision_inputs.cross_compiler,
            native_toolchain=provision_inputs.native_toolchain,
            sdk=bad_sdk,
        )

        with pytest.raises(CorruptArchiveError):
            ToolchainProvisioner(inputs, config, runner=fake_runner).run()

        assert fake_runner.commands == []
        assert not (
            provision_inputs.destination / "cross-toolchain" / "macos-destination.json"
        ).exists()

