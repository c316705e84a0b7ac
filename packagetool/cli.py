"""CLI entrypoint for packagetool."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from .config import load_config, resolve_settings
from .errors import ConfigurationError
from .git.metadata import describe
from .logging import configure_logging
from .models import ContainerRuntime, PackageFormat, PrintMode
from .orchestrator import EXIT_FAILURE, EXIT_SUCCESS, Orchestrator


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with exit status 1 like every other configuration error."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"Error: {message}\n")


def _choices(enum_type) -> list[str]:
    return [member.value for member in enum_type]


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="packagetool",
        description="Build distribution packages for a repository inside a container.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    parser.add_argument(
        "--runtime",
        choices=_choices(ContainerRuntime),
        default=None,
        help="Container runtime to use (required unless set in .packagetool.yml).",
    )
    parser.add_argument(
        "--package-system",
        "--package_system",
        dest="package_system",
        choices=_choices(PackageFormat),
        default=None,
        help="Package system to target (required unless set in .packagetool.yml).",
    )
    parser.add_argument(
        "--software-name",
        "--software_name",
        dest="software_name",
        default=None,
        help="Name of the software to package. Defaults to the project directory name.",
    )
    parser.add_argument(
        "--print-repo-info",
        "--print_repo_info",
        dest="print_repo_info",
        action="store_true",
        help="Print information about the current repository and exit.",
    )
    parser.add_argument(
        "--keep-temp-dir",
        "--keep_temp_dir",
        dest="keep_temp_dir",
        action="store_true",
        default=None,
        help="Do not delete the temporary directory after the run.",
    )
    parser.add_argument(
        "--print-temp-dir",
        "--print_temp_dir",
        dest="print_temp_dir",
        choices=_choices(PrintMode),
        default=None,
        help="Print the temporary directory contents before cleanup.",
    )
    parser.add_argument(
        "--release-dir",
        default=None,
        help="Directory that receives final artifacts (default: .release).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for packagetool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()
    root = Path(args.path).expanduser().resolve()

    try:
        config = load_config(root)
    except ConfigurationError as exc:
        parser.print_usage(sys.stderr)
        parser.exit(EXIT_FAILURE, f"Error: {exc}\n")

    if args.print_repo_info:
        metadata = orchestrator.resolve_metadata(root, args.software_name or config.software_name)
        print(describe(metadata))
        return EXIT_SUCCESS

    try:
        settings = resolve_settings(
            config,
            runtime=args.runtime,
            package_system=args.package_system,
            software_name=args.software_name,
            keep_temp_dir=args.keep_temp_dir,
            print_temp_dir=args.print_temp_dir,
            release_dir=args.release_dir,
        )
    except ConfigurationError as exc:
        parser.print_usage(sys.stderr)
        parser.exit(EXIT_FAILURE, f"Error: {exc}\n")

    outcome = orchestrator.run(root, settings)
    if outcome.ok:
        print(outcome.message)
    else:
        print(f"Error: {outcome.message}", file=sys.stderr)
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
