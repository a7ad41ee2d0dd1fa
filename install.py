# !/usr/bin/env python3
# filename: kube-node-setup/install.py
# -*- coding: utf-8 -*-
"""
Entry point for the Kubernetes node setup tool.

Subcommands:
    probe       Print the detected host profile and installer branch.
    resolve     Print the resolved Kubernetes version and package channel.
    runtime     Install containerd and runc.
    kubetools   Install kubelet, kubeadm and kubectl.
    all         runtime followed by kubetools.
"""

import argparse
import logging
import sys
from typing import List, Optional

from common.core_utils import setup_logging
from node_config.config import SCRIPT_VERSION
from node_config.config_loader import DEFAULT_CONFIG_FILE, load_app_settings
from node_config.config_models import AppSettings
from node_installer.bootstrap import run_kubetools_workflow, run_runtime_workflow
from node_installer.errors import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    BootstrapError,
    UnsupportedOSError,
)
from node_installer.host_profile import detect_os_family, probe_host
from node_installer.outcome import OutcomeReport
from node_installer.version_resolver import resolve_kubernetes_version

logger = logging.getLogger("kube_node_setup")

VERSION_PROMPT = (
    "Enter Kubernetes version (e.g. 1.30, v1.31.0, 1.30.11-1.1) "
    "or press Enter for the latest stable version: "
)


def _add_version_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "version",
        nargs="?",
        default=None,
        help="Kubernetes version: 1.30, v1.31.0 or 1.30.11-1.1. Latest stable if omitted.",
    )


def _add_kubetools_arguments(parser: argparse.ArgumentParser) -> None:
    _add_version_argument(parser)
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Prompt for the version when none is given on the command line.",
    )
    parser.add_argument(
        "--no-purge",
        action="store_true",
        help="Keep packages and state from a previous Kubernetes install.",
    )
    parser.add_argument(
        "--skip-marker-check",
        action="store_true",
        help="Do not require the marker left by the 'runtime' command.",
    )


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    # Global flags are accepted before or after the subcommand.
    global_parser = argparse.ArgumentParser(add_help=False)
    global_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    global_parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"YAML configuration file (default: {DEFAULT_CONFIG_FILE}).",
    )
    global_parser.add_argument(
        "--log-file", default=None, help="Also append log output to this file."
    )

    parser = argparse.ArgumentParser(
        description="Install containerd and the Kubernetes node tools on Ubuntu or Amazon Linux 2023.",
        parents=[global_parser],
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {SCRIPT_VERSION}"
    )
    subparsers = parser.add_subparsers(
        dest="command", help="Command to execute", required=True
    )

    subparsers.add_parser(
        "probe",
        help="Print the detected OS, architecture and installer branch.",
    )

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve a Kubernetes version to its package channel.",
    )
    _add_version_argument(resolve_parser)

    runtime_parser = subparsers.add_parser(
        "runtime",
        help="Install containerd and runc from upstream release binaries.",
    )
    runtime_parser.add_argument(
        "--containerd-version",
        default=None,
        help="containerd version to install instead of the latest release.",
    )
    runtime_parser.add_argument(
        "--runc-version",
        default=None,
        help="runc release tag to install instead of the latest release.",
    )

    kubetools_parser = subparsers.add_parser(
        "kubetools",
        help="Install kubelet, kubeadm and kubectl.",
    )
    _add_kubetools_arguments(kubetools_parser)

    all_parser = subparsers.add_parser(
        "all",
        help="Run 'runtime' and then 'kubetools'.",
    )
    _add_kubetools_arguments(all_parser)
    all_parser.add_argument(
        "--containerd-version", default=None, help="See 'runtime --help'."
    )
    all_parser.add_argument(
        "--runc-version", default=None, help="See 'runtime --help'."
    )

    all_args = args if args is not None else sys.argv[1:]
    global_args, remaining_args = global_parser.parse_known_args(all_args)
    parsed_args = parser.parse_args(remaining_args)

    # Combine the global arguments with the subcommand arguments
    parsed_args.verbose = global_args.verbose
    parsed_args.config = global_args.config
    parsed_args.log_file = global_args.log_file
    return parsed_args


def prompt_for_version(input_func=None) -> Optional[str]:
    """Ask for a version on stdin; a blank answer means latest stable."""
    answer = (input_func or input)(VERSION_PROMPT).strip()
    return answer or None


def _command_probe(app_settings: AppSettings) -> int:
    host = probe_host(app_settings, logger)
    print(f"Distribution: {host.distribution_name} {host.distribution_version}")
    print(f"Architecture: {host.architecture} (platform {host.platform})")
    try:
        family = detect_os_family(host)
    except UnsupportedOSError as e:
        print("Installer branch: unsupported")
        logger.error(str(e))
        return e.exit_code
    print(f"Installer branch: {family.value}")
    return EXIT_SUCCESS


def _command_resolve(
    app_settings: AppSettings, parsed_args: argparse.Namespace
) -> int:
    version = resolve_kubernetes_version(
        parsed_args.version or app_settings.kubernetes.version,
        app_settings,
        logger,
    )
    print(f"Version: {version.resolved_full_version}")
    print(f"Channel: {version.channel}")
    print(f"Pinned: {'yes' if version.is_pinned else 'no'}")
    if version.package_revision:
        print(f"Package revision: {version.package_revision}")
    print(f"Source: {version.source.value}")
    return EXIT_SUCCESS


def dispatch_command(
    parsed_args: argparse.Namespace,
    app_settings: AppSettings,
    report: OutcomeReport,
) -> int:
    command = parsed_args.command
    if command == "probe":
        return _command_probe(app_settings)
    if command == "resolve":
        return _command_resolve(app_settings, parsed_args)

    version_input = getattr(parsed_args, "version", None)
    if (
        command in ("kubetools", "all")
        and not version_input
        and parsed_args.interactive
    ):
        version_input = prompt_for_version()

    if command == "runtime":
        run_runtime_workflow(app_settings, report=report, current_logger=logger)
    elif command == "kubetools":
        run_kubetools_workflow(
            app_settings,
            version_input,
            report=report,
            current_logger=logger,
        )
    elif command == "all":
        host = probe_host(app_settings, logger)
        run_runtime_workflow(
            app_settings, host=host, report=report, current_logger=logger
        )
        run_kubetools_workflow(
            app_settings,
            version_input,
            host=host,
            report=report,
            current_logger=logger,
        )
    return EXIT_SUCCESS


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the node setup tool."""
    parsed_args = parse_args(args)
    log_level = logging.DEBUG if parsed_args.verbose else logging.INFO
    setup_logging(log_level=log_level, log_file=parsed_args.log_file)

    app_settings = load_app_settings(
        parsed_args, parsed_args.config, current_logger=logger
    )
    setup_logging(
        log_level=log_level,
        log_file=parsed_args.log_file,
        log_prefix=app_settings.log_prefix,
        symbols=app_settings.symbols,
    )

    report = OutcomeReport()
    try:
        exit_code = dispatch_command(parsed_args, app_settings, report)
    except BootstrapError as e:
        logger.error(f"{app_settings.symbols.get('error', '❌')} {e}")
        report.log_summary(app_settings, logger)
        return e.exit_code
    except KeyboardInterrupt:
        logger.error("Interrupted by operator.")
        report.log_summary(app_settings, logger)
        return EXIT_INTERRUPTED
    except EOFError:
        logger.error("No version entered (stdin closed).")
        return EXIT_FAILURE

    report.log_summary(app_settings, logger)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
