"""
darwincross command-line interface.

Exit status:
    0   toolchain provisioned
    1   usage error or any provisioning failure
    42  an input archive does not exist
    130 interrupted
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from darwincross.cli.utils import format_success_message, print_error
from darwincross.config.parser import load_config
from darwincross.core.exceptions import (
    DarwinCrossError,
    MissingInputError,
    UsageError,
)
from darwincross.cross.inputs import resolve_inputs
from darwincross.toolchain.provision import ToolchainProvisioner

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("darwincross")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_MISSING_INPUT = 42
EXIT_INTERRUPTED = 130

USAGE = (
    "%(prog)s [-h] [--version] [-v | -q] [--config PATH] "
    "DEST CROSS_COMPILER NATIVE_TOOLCHAIN SDK"
)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser reporting usage errors with exit status 1."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


class CLI:
    """darwincross command-line interface."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = _ArgumentParser(
            prog="darwincross",
            usage=USAGE,
            description=(
                "Assemble a Linux-hosted Swift toolchain that cross-compiles "
                "for macOS"
            ),
            epilog=(
                "Build with: swift build "
                "--destination DEST/cross-toolchain/macos-destination.json"
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"darwincross {__version__}"
        )
        verbosity = parser.add_mutually_exclusive_group()
        verbosity.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        verbosity.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="YAML file overriding URLs, triples and flags",
        )
        parser.add_argument(
            "inputs",
            nargs="*",
            metavar="PATH",
            help=(
                "destination directory, cross-compiler archive, "
                "native toolchain archive, SDK archive"
            ),
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None):
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code
        """
        parsed_args = self.parse_args(args)
        self._configure_logging(parsed_args)

        try:
            inputs = resolve_inputs(parsed_args.inputs)
        except UsageError as e:
            self.parser.print_usage(sys.stderr)
            print(f"{self.parser.prog}: error: {e}", file=sys.stderr)
            return EXIT_FAILURE
        except MissingInputError as e:
            print_error(str(e))
            return EXIT_MISSING_INPUT

        try:
            config = load_config(parsed_args.config)
            result = ToolchainProvisioner(inputs, config).run()
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return EXIT_INTERRUPTED
        except DarwinCrossError as e:
            print_error(str(e))
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return EXIT_FAILURE

        if not parsed_args.quiet:
            print(
                format_success_message(
                    "Cross toolchain ready",
                    {
                        "SDK": result.layout.sdk_dir,
                        "Toolchain": result.layout.bin_dir,
                        "Target": result.descriptor.target,
                        "Descriptor": result.descriptor_path,
                    },
                    next_steps=[
                        f"swift build --destination {result.descriptor_path}"
                    ],
                )
            )
        return EXIT_OK

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
