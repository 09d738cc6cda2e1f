"""
Tests for the destination descriptor.
"""

import json
import stat
from pathlib import Path

from darwincross.config.parser import ProvisionConfig
from darwincross.cross.descriptor import Descriptor, write_descriptor
from darwincross.toolchain.layout import ToolchainLayout


def make_descriptor(destination: Path, config: ProvisionConfig = None) -> Descriptor:
    config = config or ProvisionConfig()
    return Descriptor.for_layout(ToolchainLayout.for_destination(destination, config), config)


class TestDescriptor:
    def test_fields_for_layout(self, tmp_path):
        data = make_descriptor(tmp_path / "out").to_dict()

        assert data["version"] == 1
        assert data["sdk"] == str(tmp_path / "out" / "cross-toolchain" / "MacOSX.sdk")
        assert data["toolchain-bin-dir"] == str(
            tmp_path / "out" / "cross-toolchain" / "swift.xctoolchain" / "usr" / "bin"
        )
        assert data["target"] == "x86_64-apple-macosx"
        assert data["dynamic-library-extension"] == "dylib"
        assert data["extra-cc-flags"] == []
        assert data["extra-cpp-flags"] == ["-lc++"]

    def test_tools_directory_flag_is_two_elements(self, tmp_path):
        data = make_descriptor(tmp_path / "out").to_dict()

        assert data["extra-swiftc-flags"] == ["-tools-directory", data["toolchain-bin-dir"]]

    def test_configured_flags_follow_tools_directory(self, tmp_path):
        config = ProvisionConfig()
        config.descriptor.extra_swiftc_flags = ["-static-stdlib"]
        config.descriptor.extra_cc_flags = ["-mmacosx-version-min=10.13"]

        data = make_descriptor(tmp_path / "out", config).to_dict()

        assert data["extra-swiftc-flags"][:2] == ["-tools-directory", data["toolchain-bin-dir"]]
        assert data["extra-swiftc-flags"][2:] == ["-static-stdlib"]
        assert data["extra-cc-flags"] == ["-mmacosx-version-min=10.13"]

    def test_key_order(self, tmp_path):
        keys = list(json.loads(make_descriptor(tmp_path / "out").render()))

        assert keys == [
            "version",
            "sdk",
            "toolchain-bin-dir",
            "target",
            "dynamic-library-extension",
            "extra-cc-flags",
            "extra-swiftc-flags",
            "extra-cpp-flags",
        ]

    def test_render_is_deterministic(self, tmp_path):
        assert make_descriptor(tmp_path / "out").render() == (
            make_descriptor(tmp_path / "out").render()
        )


class TestWriteDescriptor:
    def test_writes_readable_json(self, tmp_path):
        descriptor = make_descriptor(tmp_path / "out")
        path = tmp_path / "out" / "cross-toolchain" / "macos-destination.json"

        write_descriptor(descriptor, path)

        assert json.loads(path.read_text()) == descriptor.to_dict()
        assert path.read_text().endswith("\n")
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_overwrites_existing(self, tmp_path):
        path = tmp_path / "macos-destination.json"
        path.write_text("stale")

        write_descriptor(make_descriptor(tmp_path / "out"), path)

        assert json.loads(path.read_text())["version"] == 1
