# node_installer/bootstrap.py
# -*- coding: utf-8 -*-
"""
The two node setup workflows: container runtime and Kubernetes tools.

Each workflow probes the host, picks the installer for its OS family and runs
the installer's steps through an Orchestrator. Required steps stop the run
on failure; tolerated steps are recorded and the run continues.
"""

import logging
from pathlib import Path
from typing import Optional

from common.command_utils import (
    command_exists,
    get_symbols,
    is_running_as_root,
    log_message,
)
from common.orchestrator import Orchestrator
from node_config.config_models import AppSettings
from node_installer.base_installer import BaseInstaller
from node_installer.errors import MissingPrerequisiteError, PrivilegeError
from node_installer.host_profile import HostProfile, probe_host
from node_installer.outcome import OutcomeReport, OutcomeStatus
from node_installer.registry import create_installer
from node_installer.runtime import mark_runtime_ready
from node_installer.version_resolver import VersionSpec, resolve_kubernetes_version

module_logger = logging.getLogger(__name__)


def ensure_privileges() -> None:
    """
    Raises:
        PrivilegeError: When not root and sudo is not available.
    """
    if is_running_as_root() or command_exists("sudo"):
        return
    raise PrivilegeError(
        "This command must run as root or with sudo available."
    )


def check_runtime_marker(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Require the marker left by a completed runtime workflow.

    Raises:
        MissingPrerequisiteError: The marker is required and missing.
    """
    marker = Path(app_settings.paths.runtime_marker)
    if not app_settings.kubernetes.require_runtime_marker:
        log_message(
            f"Runtime marker check skipped ({marker}).",
            "warning",
            current_logger,
            app_settings,
        )
        return
    if not marker.exists():
        raise MissingPrerequisiteError(
            f"{marker} not found. Run the 'runtime' command first to install containerd, "
            "or pass --skip-marker-check if the runtime is managed separately."
        )


def next_steps(version: VersionSpec, app_settings: AppSettings) -> str:
    """Text telling the operator how to bring the node into a cluster."""
    k8s = app_settings.kubernetes
    init_command = f"sudo kubeadm init --pod-network-cidr={k8s.pod_network_cidr}"
    if version.kubeadm_version:
        init_command += f" --kubernetes-version={version.kubeadm_version}"
    return "\n".join(
        [
            "Next steps:",
            "  1. (control plane) Initialise the cluster:",
            f"     {init_command}",
            "  2. (control plane) Configure kubectl as printed by kubeadm init (mkdir, cp, chown).",
            "  3. (control plane) Install a CNI plugin, e.g. Calico:",
            f"     kubectl apply -f {k8s.cni_manifest_url}",
            "  4. (workers) Run the 'kubeadm join' command printed by kubeadm init.",
        ]
    )


def _prepare(
    app_settings: AppSettings,
    host: Optional[HostProfile],
    logger_to_use: logging.Logger,
) -> BaseInstaller:
    ensure_privileges()
    if host is None:
        host = probe_host(app_settings, logger_to_use)
    return create_installer(host, app_settings, logger_to_use)


def run_runtime_workflow(
    app_settings: AppSettings,
    host: Optional[HostProfile] = None,
    report: Optional[OutcomeReport] = None,
    current_logger: Optional[logging.Logger] = None,
) -> OutcomeReport:
    """
    Install and start containerd with runc, then leave the runtime marker.

    Raises:
        BootstrapError: On unsupported hosts or any failed required step.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    installer = _prepare(app_settings, host, logger_to_use)

    orchestrator = Orchestrator(app_settings, logger_to_use, report)
    orchestrator.add_task("Install prerequisites", installer.install_prerequisites)
    orchestrator.add_task("Configure kernel modules and sysctl", installer.configure_kernel)
    orchestrator.add_task("Install containerd and runc", installer.install_container_runtime)
    orchestrator.add_task("Configure security profile", installer.configure_security)
    orchestrator.add_task(
        "Verify container runtime", installer.verify_container_runtime, fatal=False
    )
    orchestrator.add_task(
        "Write runtime marker",
        mark_runtime_ready,
        args=[app_settings],
        kwargs={"current_logger": logger_to_use},
    )
    orchestrator.run()

    log_message(
        f"{symbols.get('rocket', '🚀')} Container runtime setup complete on {installer.host.describe()}.",
        "success",
        logger_to_use,
        app_settings,
    )
    return orchestrator.report


def run_kubetools_workflow(
    app_settings: AppSettings,
    version_input: Optional[str] = None,
    host: Optional[HostProfile] = None,
    report: Optional[OutcomeReport] = None,
    current_logger: Optional[logging.Logger] = None,
) -> VersionSpec:
    """
    Install kubelet, kubeadm and kubectl for the requested version.

    Args:
        version_input: Operator-supplied version. Falls back to the
            configured version, then to the latest stable release.

    Returns:
        The resolved version.

    Raises:
        BootstrapError: On unsupported hosts, a missing runtime marker, an
            invalid version or any failed required step.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    k8s = app_settings.kubernetes

    installer = _prepare(app_settings, host, logger_to_use)
    check_runtime_marker(app_settings, logger_to_use)
    version = resolve_kubernetes_version(
        version_input if version_input else k8s.version,
        app_settings,
        logger_to_use,
    )

    orchestrator = Orchestrator(app_settings, logger_to_use, report)
    if k8s.purge_previous_install:
        orchestrator.add_task(
            "Purge previous Kubernetes install",
            installer.purge_previous_kubernetes,
        )
    else:
        orchestrator.report.record(
            "Purge previous Kubernetes install",
            OutcomeStatus.SKIPPED,
            "disabled",
        )
    orchestrator.add_task("Install prerequisites", installer.install_prerequisites)
    orchestrator.add_task(
        f"Configure Kubernetes {version.channel} repository",
        installer.configure_kubernetes_repository,
        args=[version],
    )
    orchestrator.add_task("Configure kernel modules and sysctl", installer.configure_kernel)
    orchestrator.add_task(
        "Install kubelet, kubeadm and kubectl",
        installer.install_kubernetes_tools,
        args=[version],
    )
    orchestrator.add_task("Disable swap", installer.disable_swap)
    orchestrator.add_task("Configure crictl", installer.configure_crictl)
    orchestrator.add_task("Enable kubelet", installer.enable_kubelet)
    orchestrator.add_task(
        "Report installed versions", installer.report_versions, fatal=False
    )
    orchestrator.run()

    log_message(
        f"{symbols.get('rocket', '🚀')} Kubernetes tools ({version.describe()}) installed on {installer.host.describe()}.",
        "success",
        logger_to_use,
        app_settings,
    )
    log_message(next_steps(version, app_settings), "info", logger_to_use, app_settings)
    return version
