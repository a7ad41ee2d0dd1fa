# node_installer/base_installer.py
# -*- coding: utf-8 -*-
"""
Base installer class for the per-distribution installers.

Subclasses implement the package-manager specific steps. Kernel
prerequisites, the container runtime, crictl, swap handling and the kubelet
service are the same everywhere and live here.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from common.command_utils import (
    command_exists,
    get_symbols,
    log_message,
    run_tolerated_command,
)
from common.file_utils import remove_paths, write_config_file
from common.system_utils import (
    apply_sysctl,
    disable_swap,
    enable_service,
    load_kernel_modules,
    systemd_reload,
)
from node_config import config as static_config
from node_config.config_models import AppSettings
from node_installer import runtime
from node_installer.host_profile import HostProfile, OsFamily
from node_installer.outcome import OutcomeStatus
from node_installer.version_resolver import VersionSpec


class BaseInstaller(ABC):
    """
    Base class for OS-specific node installers.

    Every public step either completes or raises; tolerated failures are
    logged and reported through the returned OutcomeStatus.
    """

    os_family: OsFamily = OsFamily.UNSUPPORTED
    metadata: Dict[str, Any] = {"description": ""}

    def __init__(
        self,
        host: HostProfile,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the installer.

        Args:
            host: The probed host profile.
            app_settings: The application settings.
            logger: Optional logger instance. If not provided, a new logger will be created.
        """
        self.host = host
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.symbols = get_symbols(app_settings)

    @abstractmethod
    def install_prerequisites(self) -> None:
        """Install the base tools the later steps rely on."""

    @abstractmethod
    def configure_security(self) -> OutcomeStatus:
        """Apply or report the distribution's mandatory access control setup."""

    @abstractmethod
    def purge_previous_kubernetes(self) -> OutcomeStatus:
        """Remove packages and state left by an earlier Kubernetes install."""

    @abstractmethod
    def configure_kubernetes_repository(self, version: VersionSpec) -> None:
        """Point the package manager at the repository for `version.channel`."""

    @abstractmethod
    def install_kubernetes_tools(self, version: VersionSpec) -> None:
        """Install kubelet, kubeadm and kubectl from the configured repository."""

    def _log(self, message: str, level: str = "info") -> None:
        log_message(message, level, self.logger, self.app_settings)

    def configure_kernel(self) -> None:
        """Load overlay/br_netfilter and enable bridged traffic forwarding."""
        self._log(
            f"{self.symbols.get('step', '➡️')} Setting up kernel prerequisites (modules and sysctl)..."
        )
        write_config_file(
            static_config.MODULES_LOAD_PATH,
            static_config.MODULES_LOAD_CONTENT,
            self.app_settings,
            current_logger=self.logger,
        )
        load_kernel_modules(
            static_config.KERNEL_MODULES, self.app_settings, self.logger
        )
        write_config_file(
            static_config.SYSCTL_CONF_PATH,
            static_config.SYSCTL_CONTENT,
            self.app_settings,
            current_logger=self.logger,
        )
        apply_sysctl(self.app_settings, self.logger)

    def install_container_runtime(self) -> None:
        runtime.install_container_runtime(
            self.host, self.app_settings, self.logger
        )

    def verify_container_runtime(self) -> OutcomeStatus:
        return runtime.verify_container_runtime(self.app_settings, self.logger)

    def reset_kubeadm(self) -> OutcomeStatus:
        """Run `kubeadm reset -f`; failure on a fresh host is expected."""
        if not command_exists("kubeadm"):
            self._log("kubeadm not installed; nothing to reset.")
            return OutcomeStatus.SKIPPED
        if run_tolerated_command(
            ["kubeadm", "reset", "-f"],
            self.app_settings,
            reason="kubeadm is not initialised or was already reset",
            current_logger=self.logger,
        ):
            return OutcomeStatus.INSTALLED
        return OutcomeStatus.TOLERATED_FAILURE

    def remove_kubernetes_state(self, extra_paths: Optional[List[str]] = None) -> None:
        """Delete Kubernetes state directories. containerd state is kept."""
        paths: List[str] = list(static_config.KUBERNETES_STATE_PATHS)
        if extra_paths:
            paths.extend(extra_paths)
        self._log(
            f"{self.symbols.get('step', '➡️')} Removing Kubernetes configuration and state directories..."
        )
        remove_paths(paths, self.app_settings, current_logger=self.logger)

    def disable_swap(self) -> OutcomeStatus:
        if not self.app_settings.kubernetes.disable_swap:
            self._log("Swap handling disabled in settings; leaving swap as is.")
            return OutcomeStatus.SKIPPED
        changed = disable_swap(
            self.app_settings.paths.fstab, self.app_settings, self.logger
        )
        return OutcomeStatus.INSTALLED if changed else OutcomeStatus.ALREADY_PRESENT

    def configure_crictl(self) -> None:
        write_config_file(
            self.app_settings.paths.crictl_config,
            static_config.CRICTL_CONFIG_CONTENT,
            self.app_settings,
            current_logger=self.logger,
        )

    def enable_kubelet(self) -> None:
        """Reload systemd and enable the packaged kubelet unit."""
        systemd_reload(self.app_settings, self.logger)
        enable_service("kubelet", self.app_settings, current_logger=self.logger)
        self._log(
            f"{self.symbols.get('success', '✅')} kubelet enabled. It restarts in a loop until 'kubeadm init' or 'kubeadm join' runs.",
            "success",
        )

    def report_versions(self) -> OutcomeStatus:
        """Print the installed tool versions. Every failure is tolerated."""
        status = OutcomeStatus.INSTALLED
        for command in (
            ["kubelet", "--version"],
            ["kubeadm", "version"],
            ["kubectl", "version", "--client", "--output=yaml"],
        ):
            if not run_tolerated_command(
                command,
                self.app_settings,
                reason=f"could not read the {command[0]} version",
                elevated=False,
                capture_output=False,
                current_logger=self.logger,
            ):
                status = OutcomeStatus.TOLERATED_FAILURE
        return status
