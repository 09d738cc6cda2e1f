"""Configuration handling for darwincross."""

from darwincross.config.parser import (
    BundleConfig,
    CctoolsConfig,
    DescriptorConfig,
    ProvisionConfig,
    load_config,
    parse_config,
)

__all__ = [
    "BundleConfig",
    "CctoolsConfig",
    "DescriptorConfig",
    "ProvisionConfig",
    "load_config",
    "parse_config",
]
