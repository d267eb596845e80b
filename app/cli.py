"""Install, update or remove the codex-mcp binary from GitHub releases."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, TextIO

from app.config import InstallerConfig, get_installer_config
from app.prompts import AutoConfirmPrompter, ConsolePrompter
from app.version import get_installer_version
from services.managed_binary import (
    InstallCorruptedError,
    ManagedBinaryError,
    ManagedBinaryService,
    Prompter,
    build_managed_binary_service,
)
from shared.logging_config import ensure_installer_logging, set_file_log_verbosity


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

ServiceFactory = Callable[[InstallerConfig, Prompter], ManagedBinaryService]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="codex-mcp-installer", description=__doc__)
    modes = parser.add_mutually_exclusive_group()
    modes.add_argument(
        "-u",
        "--update",
        dest="mode",
        action="store_const",
        const="update",
        help="Update an existing installation to the latest release.",
    )
    modes.add_argument(
        "-c",
        "--check",
        dest="mode",
        action="store_const",
        const="check",
        help="Report whether a newer release is available without changing anything.",
    )
    modes.add_argument(
        "--uninstall",
        dest="mode",
        action="store_const",
        const="uninstall",
        help="Remove the installed binary.",
    )
    modes.add_argument(
        "--configure",
        dest="mode",
        action="store_const",
        const="configure",
        help="Register the installed binary with the claude CLI.",
    )
    parser.set_defaults(mode="install")
    parser.add_argument(
        "-d",
        "--dir",
        type=Path,
        default=None,
        help="Install directory (skips the directory prompt).",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Accept every confirmation without asking.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug diagnostics on the terminal.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_installer_version()}",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace, service: ManagedBinaryService) -> int:
    """Dispatch the selected mode and return the process exit code."""

    if args.mode == "update":
        service.update(args.dir, offer_install=not args.yes)
    elif args.mode == "check":
        report = service.check_update()
        logger.debug("Check finished with status %s", report.status.value)
    elif args.mode == "uninstall":
        service.uninstall()
    elif args.mode == "configure":
        service.configure_external_tool()
    else:
        service.install(args.dir, offer_configure=not args.yes)
    return EXIT_OK


def _default_service_factory(config: InstallerConfig, prompter: Prompter) -> ManagedBinaryService:
    return build_managed_binary_service(config, prompter)


def main(
    argv: list[str] | None = None,
    *,
    service_factory: ServiceFactory = _default_service_factory,
    stderr: TextIO | None = None,
) -> int:
    args = parse_args(argv)
    err = stderr or sys.stderr
    config = get_installer_config()
    log_path = ensure_installer_logging(verbose=args.verbose)
    set_file_log_verbosity(config.log_verbosity)
    logger.info("codex-mcp-installer %s starting in %s mode", get_installer_version(), args.mode)
    logger.debug("Writing diagnostics to %s", log_path)

    prompter: Prompter = AutoConfirmPrompter() if args.yes else ConsolePrompter()
    try:
        service = service_factory(config, prompter)
        return run(args, service)
    except InstallCorruptedError as exc:
        logger.critical("%s", exc)
        print(f"fatal: {exc}", file=err)
        print(f"       see {log_path} for details", file=err)
        return EXIT_FAILURE
    except ManagedBinaryError as exc:
        logger.error("%s failed: %s", args.mode, exc)
        print(f"error: {exc}", file=err)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted during %s", args.mode)
        print("\ninterrupted", file=err)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())
