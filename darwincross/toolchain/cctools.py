"""
Build of the auxiliary linker tool suite (cctools-port).

The macOS linker (ld64) and its companion tools cannot run on Linux, so they
are built from cctools-port sources with the source's own autotools build and
installed into ``swift.xctoolchain/usr``.

Steps:
    1. fetch the source archive through the artifact cache
    2. extract it into a scratch directory and locate ``cctools/``
    3. strip compiler warning flags the host compiler rejects from the
       configure scripts
    4. ./configure --prefix=<xctoolchain>/usr --target=<triple>
    5. drop optional components from the generated Makefile's SUBDIRS
    6. make && make install
    7. ld -> <triple>-ld
    8. dsymutil stub (the real tool is not ported)
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from darwincross.config.parser import CctoolsConfig
from darwincross.core.cache import ArtifactCache
from darwincross.core.exceptions import BuildError, FilesystemError
from darwincross.core.filesystem import (
    atomic_write,
    extract_archive,
    replace_symlink,
    temporary_directory,
)
from darwincross.core.process import CommandRunner, check_command
from darwincross.toolchain.layout import ToolchainLayout

logger = logging.getLogger(__name__)

CONFIGURE_SCRIPTS = ("configure", "configure.ac")

DSYMUTIL_STUB = """#!/bin/sh
echo "dsymutil: not available in this cross toolchain, skipping $*" >&2
exit 0
"""


# ============================================================================
# Text Patches
# ============================================================================


@dataclass(frozen=True)
class TextPatch:
    """A named search/replace rule applied to one file of a source tree."""

    name: str
    file: str
    search: str
    replacement: str = ""


def configure_patches(flags: Iterable[str]) -> List[TextPatch]:
    """Rules removing each flag from both the generated and template configure scripts."""
    return [
        TextPatch(name=f"strip {flag} from {script}", file=script, search=flag)
        for flag in flags
        for script in CONFIGURE_SCRIPTS
    ]


def apply_patches(source_dir: Path, patches: Sequence[TextPatch]) -> List[TextPatch]:
    """
    Apply text patches under ``source_dir``.

    A pattern that is not found is logged as a warning rather than treated as
    an error, so upstream changes show up in the log.

    Returns:
        The patches that matched nothing

    Raises:
        BuildError: If a patched file does not exist or cannot be rewritten
    """
    unmatched = []

    for patch in patches:
        path = source_dir / patch.file
        if not path.is_file():
            raise BuildError(f"Cannot apply '{patch.name}': {path} does not exist")

        try:
            text = path.read_text(encoding="utf-8", errors="surrogateescape")
            count = text.count(patch.search)
            if count == 0:
                logger.warning(
                    f"Patch '{patch.name}' did not match: "
                    f"{patch.search!r} not found in {path}"
                )
                unmatched.append(patch)
                continue

            mode = path.stat().st_mode
            patched = text.replace(patch.search, patch.replacement)
            atomic_write(path, patched.encode("utf-8", errors="surrogateescape"))
            # atomic_write creates the file 0600; configure must stay executable
            path.chmod(mode)
        except OSError as e:
            raise BuildError(f"Cannot apply '{patch.name}' to {path}: {e}") from e
        logger.debug(f"Applied '{patch.name}' ({count} occurrence(s))")

    return unmatched


_SUBDIRS_RE = re.compile(r"^\s*SUBDIRS\s*[+:]?=")


def exclude_build_components(makefile: Path, components: Sequence[str]) -> List[str]:
    """
    Remove component names from the SUBDIRS list of a Makefile.

    Best effort: names are matched as whole whitespace-separated tokens,
    including on backslash-continued lines, and names that are not listed
    are logged rather than treated as errors.

    Returns:
        The components that were actually removed

    Raises:
        BuildError: If the Makefile does not exist or cannot be rewritten
    """
    if not makefile.is_file():
        raise BuildError(f"Makefile not found: {makefile}")

    if not components:
        return []

    try:
        text = makefile.read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as e:
        raise BuildError(f"Cannot read {makefile}: {e}") from e

    lines = text.splitlines(keepends=True)
    removed = set()
    in_subdirs = False

    for index, line in enumerate(lines):
        if not in_subdirs and not _SUBDIRS_RE.match(line):
            continue

        prefix, value = _split_assignment(line) if not in_subdirs else ("", line)
        new_value = value
        for name in components:
            pattern = re.compile(rf"(?<!\S){re.escape(name)}(?=\s|\\|$)")
            if pattern.search(new_value):
                removed.add(name)
                new_value = pattern.sub("", new_value)

        if new_value != value:
            new_value = re.sub(r"(?<=\S)[ \t]{2,}", " ", new_value)
            lines[index] = prefix + new_value

        in_subdirs = line.rstrip("\r\n").endswith("\\")

    for name in components:
        if name not in removed:
            logger.warning(f"Component '{name}' not listed in SUBDIRS of {makefile}")

    if removed:
        try:
            atomic_write(
                makefile, "".join(lines).encode("utf-8", errors="surrogateescape")
            )
        except OSError as e:
            raise BuildError(f"Cannot update {makefile}: {e}") from e
        logger.info(
            f"Excluded {', '.join(sorted(removed))} from the build in {makefile.name}"
        )

    return [name for name in components if name in removed]


def _split_assignment(line: str):
    position = line.index("=") + 1
    return line[:position], line[position:]


# ============================================================================
# Builder
# ============================================================================


class CctoolsBuilder:
    """
    Build and install cctools-port into the toolchain.

    Attributes:
        layout: Toolchain layout being provisioned
        cache: Cache the source archive is fetched through
        config: cctools build settings
        runner: External process runner (``run_command`` signature)
    """

    def __init__(
        self,
        layout: ToolchainLayout,
        cache: ArtifactCache,
        config: CctoolsConfig,
        runner: Optional[CommandRunner] = None,
    ):
        self.layout = layout
        self.cache = cache
        self.config = config
        self.runner = runner

    @property
    def linker_name(self) -> str:
        return f"{self.config.triple}-ld"

    def fetch_source(self) -> Path:
        """
        Fetch the cctools-port source archive through the cache.

        Raises:
            DownloadError: If the archive is not cached and cannot be downloaded
        """
        return self.cache.fetch(
            self.config.url, self.config.cache_key, self.config.sha256
        )

    def build(self, archive: Optional[Path] = None) -> Path:
        """
        Run every build step; any failure aborts the build.

        Args:
            archive: Source archive from ``fetch_source`` (fetched if None)

        Returns:
            Path of the installed ``ld`` link

        Raises:
            DownloadError, CorruptArchiveError, BuildError, FilesystemError
        """
        if archive is None:
            archive = self.fetch_source()

        with temporary_directory(
            prefix=".cctools-", parent=self.layout.destination
        ) as scratch:
            logger.info(f"Extracting {archive.name}")
            extract_archive(archive, scratch)

            source_dir = find_source_dir(scratch, self.config.source_glob)
            logger.info(f"Building cctools from {source_dir}")

            apply_patches(source_dir, configure_patches(self.config.unsupported_flags))
            self._configure(source_dir)
            exclude_build_components(
                source_dir / "Makefile", self.config.excluded_components
            )
            self._make(source_dir)
            ld_link = self.link_linker()

        write_dsymutil_stub(self.layout.bin_dir)
        return ld_link

    def _configure(self, source_dir: Path) -> None:
        check_command(
            [
                "./configure",
                f"--prefix={self.layout.usr_dir}",
                f"--target={self.config.triple}",
            ],
            cwd=source_dir,
            step="cctools configure",
            runner=self.runner,
        )

    def _make(self, source_dir: Path) -> None:
        check_command(
            ["make", f"-j{self.config.jobs}"],
            cwd=source_dir,
            step="cctools build",
            runner=self.runner,
        )
        check_command(
            ["make", "install"],
            cwd=source_dir,
            step="cctools install",
            runner=self.runner,
        )

    def link_linker(self) -> Path:
        """
        Create ``ld`` next to the triple-prefixed linker.

        Raises:
            BuildError: If the linker was not installed
        """
        bin_dir = self.layout.bin_dir
        linker = bin_dir / self.linker_name
        if not linker.exists():
            raise BuildError(f"Linker {linker} was not installed by cctools")

        ld_link = bin_dir / "ld"
        try:
            replace_symlink(ld_link, self.linker_name)
        except OSError as e:
            raise FilesystemError(f"Cannot create {ld_link}: {e}") from e

        logger.info(f"Linked {ld_link} -> {self.linker_name}")
        return ld_link


def find_source_dir(scratch: Path, pattern: str) -> Path:
    """
    Locate the nested cctools source directory inside the extracted archive.

    Raises:
        BuildError: If nothing matches ``pattern``
    """
    matches = sorted(path for path in scratch.glob(pattern) if path.is_dir())
    if not matches:
        raise BuildError(f"No directory matching '{pattern}' in {scratch}")
    return matches[0]


def write_dsymutil_stub(bin_dir: Path) -> Path:
    """
    Install a ``dsymutil`` placeholder that only prints a notice.

    Raises:
        FilesystemError: If the stub cannot be written
    """
    stub = bin_dir / "dsymutil"
    try:
        if stub.is_symlink():
            stub.unlink()
        atomic_write(stub, DSYMUTIL_STUB)
        stub.chmod(0o755)
    except OSError as e:
        raise FilesystemError(f"Cannot write {stub}: {e}") from e

    logger.info(f"Installed dsymutil stub at {stub}")
    return stub
