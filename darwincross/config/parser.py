"""YAML configuration parser for darwincross.

Every key is optional; a missing file section keeps the built-in defaults,
which reproduce the standard Linux-to-macOS x86_64 toolchain.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from darwincross.core.exceptions import ConfigError

CCTOOLS_REVISION = "1010.6-ld64-951.9"
CCTOOLS_URL_TEMPLATE = (
    "https://github.com/tpoechtrager/cctools-port/archive/refs/heads/"
    "{revision}.tar.gz"
)


@dataclass
class CctoolsConfig:
    """Auxiliary linker tool suite (cctools-port) build settings."""

    revision: str = CCTOOLS_REVISION
    url: Optional[str] = None
    sha256: Optional[str] = None
    triple: str = "x86_64-apple-darwin"
    source_glob: str = "cctools-port-*/cctools"
    unsupported_flags: List[str] = field(
        default_factory=lambda: ["-Wno-unused-but-set-variable"]
    )
    excluded_components: List[str] = field(
        default_factory=lambda: ["libobjc2", "otool"]
    )
    jobs: int = 4

    def __post_init__(self):
        # The source URL follows the revision unless set explicitly
        if self.url is None:
            self.url = CCTOOLS_URL_TEMPLATE.format(revision=self.revision)

    @property
    def cache_key(self) -> str:
        return f"cctools-port-{self.revision}.tar.gz"


@dataclass
class BundleConfig:
    """Subpaths merged from each Swift toolchain bundle into the xctoolchain."""

    cross_compiler: List[str] = field(default_factory=lambda: ["usr"])
    native_toolchain: List[str] = field(
        default_factory=lambda: [
            "usr/lib/swift/macosx",
            "usr/lib/swift_static/macosx",
        ]
    )


@dataclass
class DescriptorConfig:
    """Extra flags written into the destination descriptor."""

    extra_cc_flags: List[str] = field(default_factory=list)
    extra_swiftc_flags: List[str] = field(default_factory=list)
    extra_cpp_flags: List[str] = field(default_factory=lambda: ["-lc++"])


@dataclass
class ProvisionConfig:
    """Complete darwincross configuration."""

    version: int = 1
    target: str = "x86_64-apple-macosx"
    dynamic_library_extension: str = "dylib"
    toolchain_dir_name: str = "cross-toolchain"
    sdk_dir_name: str = "MacOSX.sdk"
    xctoolchain_dir_name: str = "swift.xctoolchain"
    descriptor_name: str = "macos-destination.json"
    cctools: CctoolsConfig = field(default_factory=CctoolsConfig)
    bundles: BundleConfig = field(default_factory=BundleConfig)
    descriptor: DescriptorConfig = field(default_factory=DescriptorConfig)


# Keys that accept null in addition to a string
_OPTIONAL_STRINGS = ("url", "sha256")

_SECTIONS = {
    "cctools": CctoolsConfig,
    "bundles": BundleConfig,
    "descriptor": DescriptorConfig,
}


def load_config(config_path: Optional[Path] = None) -> ProvisionConfig:
    """
    Load configuration, falling back to defaults when no file is given.

    Args:
        config_path: Path to a YAML configuration file, or None

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if config_path is None:
        return ProvisionConfig()

    return parse_config(config_path)


def parse_config(config_path: Path) -> ProvisionConfig:
    """
    Parse a darwincross YAML configuration file.

    Raises:
        ConfigError: If the file is missing or invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if data is None:
        return ProvisionConfig()

    return parse_config_data(data)


def parse_config_data(data: Any) -> ProvisionConfig:
    """Validate a loaded YAML document and build a ProvisionConfig."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    version = data.get("version", 1)
    if version != 1:
        raise ConfigError(f"Unsupported version: {version} (expected 1)")

    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _SECTIONS:
            kwargs[key] = _parse_section(key, _SECTIONS[key], value)
        else:
            kwargs[key] = value

    config = _build("configuration", ProvisionConfig, kwargs)

    if config.cctools.jobs < 1:
        raise ConfigError("cctools.jobs must be at least 1")

    return config


def _parse_section(name: str, cls, value: Any):
    if value is None:
        return cls()
    if not isinstance(value, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return _build(name, cls, value)


def _build(name: str, cls, values: Dict[str, Any]):
    """Instantiate a config dataclass, type-checking against the defaults."""
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in {name}: {', '.join(unknown)}")

    defaults = cls()
    for key, value in values.items():
        default = getattr(defaults, key)
        if key in _OPTIONAL_STRINGS:
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{name}.{key} must be a string")
            continue
        if isinstance(default, list):
            if not isinstance(value, list) or not all(
                isinstance(item, str) for item in value
            ):
                raise ConfigError(f"{name}.{key} must be a list of strings")
        elif isinstance(default, bool) or not isinstance(default, (str, int)):
            continue
        elif type(value) is not type(default):
            raise ConfigError(
                f"{name}.{key} must be of type {type(default).__name__}"
            )

    return cls(**values)
