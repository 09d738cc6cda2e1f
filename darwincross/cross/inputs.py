"""
Validation of the provisioning inputs.

Nothing here touches the filesystem beyond ``stat`` calls, so a failed
validation never leaves a partially created destination behind.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from darwincross.core.exceptions import MissingInputError, UsageError
from darwincross.core.filesystem import absolute_path

# Argument names, in command-line order
INPUT_ARGUMENTS = ("destination", "cross-compiler", "native-toolchain", "sdk")


@dataclass(frozen=True)
class ProvisionInputs:
    """Absolute paths of the destination and the three input archives."""

    destination: Path
    cross_compiler: Path
    native_toolchain: Path
    sdk: Path


def resolve_inputs(
    paths: Sequence[Union[str, Path]], cwd: Optional[Path] = None
) -> ProvisionInputs:
    """
    Make the four input paths absolute and check the archives exist.

    Args:
        paths: destination, cross-compiler archive, native-toolchain
            archive, SDK archive
        cwd: Directory relative paths are resolved against (default: cwd)

    Returns:
        ProvisionInputs with absolute paths

    Raises:
        UsageError: If not exactly four paths are given
        MissingInputError: If an archive is not an existing regular file
    """
    if len(paths) != len(INPUT_ARGUMENTS):
        raise UsageError(
            f"expected {len(INPUT_ARGUMENTS)} arguments "
            f"({', '.join(INPUT_ARGUMENTS)}), got {len(paths)}"
        )

    base = Path(cwd) if cwd is not None else Path.cwd()
    resolved = [absolute_path(path, base) for path in paths]

    for argument, path in zip(INPUT_ARGUMENTS[1:], resolved[1:]):
        if not path.is_file():
            raise MissingInputError(argument, path)

    return ProvisionInputs(*resolved)
