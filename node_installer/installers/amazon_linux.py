# node_installer/installers/amazon_linux.py
# -*- coding: utf-8 -*-
"""
Installer for Amazon Linux 2023.

Kubernetes tools come from the pkgs.k8s.io rpm repository for the resolved
channel, installed with dnf and the packaged kubelet unit. SELinux is left
as configured; the installer only reports its mode.
"""

import logging
from typing import List, Optional

from common.system_utils import get_selinux_mode
from common.redhat.dnf_manager import DnfManager
from node_config import config as static_config
from node_config.config_models import AppSettings
from node_installer.base_installer import BaseInstaller
from node_installer.host_profile import HostProfile, OsFamily
from node_installer.outcome import OutcomeStatus
from node_installer.registry import InstallerRegistry
from node_installer.version_resolver import VersionSpec

KUBERNETES_REPO_ID = "kubernetes"


def dnf_package_specs(version: VersionSpec) -> List[str]:
    """kubelet/kubeadm/kubectl specs for dnf; `name-<full>` when pinned."""
    if not version.is_pinned:
        return list(static_config.KUBERNETES_TOOL_PACKAGES)
    return [
        f"{name}-{version.resolved_full_version}"
        for name in static_config.KUBERNETES_TOOL_PACKAGES
    ]


def yum_repo_content(app_settings: AppSettings, version: VersionSpec) -> str:
    return static_config.YUM_REPO_TEMPLATE.format(
        base_url=app_settings.kubernetes.packages_base_url.rstrip("/"),
        channel=version.channel,
        excludes=" ".join(static_config.YUM_REPO_EXCLUDES),
    )


@InstallerRegistry.register(
    OsFamily.AMAZON_LINUX,
    metadata={"description": "Amazon Linux 2023 (dnf, pkgs.k8s.io rpm repository)"},
)
class AmazonLinuxInstaller(BaseInstaller):
    """Installer for Amazon Linux 2023 hosts."""

    def __init__(
        self,
        host: HostProfile,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        dnf_manager: Optional[DnfManager] = None,
    ):
        super().__init__(host, app_settings, logger)
        self._dnf_manager = dnf_manager

    @property
    def dnf(self) -> DnfManager:
        if self._dnf_manager is None:
            self._dnf_manager = DnfManager(logger=self.logger)
        return self._dnf_manager

    def install_prerequisites(self) -> None:
        self._log(
            f"{self.symbols.get('package', '📦')} Installing prerequisite packages..."
        )
        # curl-minimal ships by default and conflicts with curl.
        if not self.dnf.install(
            static_config.AMAZON_LINUX_PREREQ_PACKAGES,
            self.app_settings,
            allow_erasing=True,
        ):
            raise RuntimeError("dnf could not install prerequisite packages")

    def configure_security(self) -> OutcomeStatus:
        for line in static_config.SELINUX_GUIDANCE:
            self._log(line)
        mode = get_selinux_mode(self.app_settings, self.logger)
        if mode is None:
            self._log(
                f"{self.symbols.get('warning', '⚠️')} Could not determine the SELinux mode (getenforce unavailable).",
                "warning",
            )
            return OutcomeStatus.TOLERATED_FAILURE
        self._log(f"Current SELinux mode: {mode}")
        return OutcomeStatus.SKIPPED

    def purge_previous_kubernetes(self) -> OutcomeStatus:
        self._log(
            f"{self.symbols.get('step', '➡️')} Removing leftovers of a previous Kubernetes install..."
        )
        status = self.reset_kubeadm()
        # Locks outlive `dnf remove` and would hide a newly requested version.
        self.dnf.versionlock_delete(
            static_config.KUBERNETES_TOOL_PACKAGES, self.app_settings
        )
        if not self.dnf.remove(
            static_config.KUBERNETES_PURGE_PACKAGES, self.app_settings
        ):
            status = OutcomeStatus.TOLERATED_FAILURE
        if not self.dnf.autoremove(self.app_settings):
            status = OutcomeStatus.TOLERATED_FAILURE
        self.remove_kubernetes_state([str(static_config.YUM_REPO_PATH)])
        if status is OutcomeStatus.SKIPPED:
            return OutcomeStatus.INSTALLED
        return status

    def configure_kubernetes_repository(self, version: VersionSpec) -> None:
        self._log(
            f"{self.symbols.get('step', '➡️')} Configuring the Kubernetes {version.channel} dnf repository..."
        )
        if not self.dnf.add_repository(
            static_config.YUM_REPO_PATH,
            yum_repo_content(self.app_settings, version),
            self.app_settings,
        ):
            raise RuntimeError(f"could not write {static_config.YUM_REPO_PATH}")

    def install_kubernetes_tools(self, version: VersionSpec) -> None:
        packages = dnf_package_specs(version)
        self._log(
            f"{self.symbols.get('package', '📦')} Installing {', '.join(packages)}..."
        )
        if not self.dnf.install(
            packages,
            self.app_settings,
            disable_excludes=KUBERNETES_REPO_ID,
        ):
            raise RuntimeError(f"dnf could not install {', '.join(packages)}")

        if self.app_settings.kubernetes.hold_packages:
            # Tolerated: the exclude= list still blocks routine upgrades.
            self.dnf.versionlock(
                static_config.KUBERNETES_TOOL_PACKAGES, self.app_settings
            )
