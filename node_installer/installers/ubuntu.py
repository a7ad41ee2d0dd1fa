# node_installer/installers/ubuntu.py
# -*- coding: utf-8 -*-
"""
Installer for Ubuntu 20.04 and later.

Kubernetes tools come from the pkgs.k8s.io apt repository for the resolved
channel and are held with apt-mark. runc's AppArmor profile, when present,
is disabled.
"""

import logging
from typing import List, Optional

from common.command_utils import (
    command_exists,
    run_elevated_command,
    run_tolerated_command,
)
from common.debian.apt_manager import AptManager
from common.network_utils import fetch_text
from node_config import config as static_config
from node_config.config_models import AppSettings
from node_installer.base_installer import BaseInstaller
from node_installer.errors import DownloadError
from node_installer.host_profile import HostProfile, OsFamily
from node_installer.outcome import OutcomeStatus
from node_installer.registry import InstallerRegistry
from node_installer.version_resolver import VersionSpec


def apt_package_specs(version: VersionSpec) -> List[str]:
    """
    kubelet/kubeadm/kubectl specs for apt-get install.

    Pinned versions become `name=<full>-<revision>`; without a revision the
    `*` glob lets apt pick the newest package build of that release.
    """
    if not version.is_pinned:
        return list(static_config.KUBERNETES_TOOL_PACKAGES)
    revision = version.package_revision or "*"
    return [
        f"{name}={version.resolved_full_version}-{revision}"
        for name in static_config.KUBERNETES_TOOL_PACKAGES
    ]


def apt_source_line(app_settings: AppSettings, version: VersionSpec) -> str:
    return static_config.APT_SOURCE_TEMPLATE.format(
        keyring=static_config.APT_KEYRING_PATH,
        base_url=app_settings.kubernetes.packages_base_url.rstrip("/"),
        channel=version.channel,
    )


def release_key_url(app_settings: AppSettings, version: VersionSpec) -> str:
    return (
        f"{app_settings.kubernetes.packages_base_url.rstrip('/')}"
        f"/{version.channel}/deb/Release.key"
    )


@InstallerRegistry.register(
    OsFamily.UBUNTU,
    metadata={"description": "Ubuntu 20.04+ (apt, pkgs.k8s.io deb repository)"},
)
class UbuntuInstaller(BaseInstaller):
    """Installer for Ubuntu hosts."""

    def __init__(
        self,
        host: HostProfile,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
    ):
        super().__init__(host, app_settings, logger)
        self._apt_manager = apt_manager

    @property
    def apt(self) -> AptManager:
        if self._apt_manager is None:
            self._apt_manager = AptManager(logger=self.logger)
        return self._apt_manager

    def install_prerequisites(self) -> None:
        self._log(
            f"{self.symbols.get('package', '📦')} Installing prerequisite packages..."
        )
        if not self.apt.install(
            static_config.UBUNTU_PREREQ_PACKAGES, self.app_settings
        ):
            raise RuntimeError("apt-get could not install prerequisite packages")

    def configure_security(self) -> OutcomeStatus:
        """Disable and unload the runc AppArmor profile if one exists."""
        profile = static_config.APPARMOR_RUNC_PROFILE
        if not profile.exists():
            self._log(
                f"AppArmor profile {profile} not found. Skipping AppArmor configuration for runc."
            )
            return OutcomeStatus.SKIPPED

        if not command_exists("apparmor_parser"):
            self._log("apparmor_parser not found. Installing apparmor-utils...")
            if not self.apt.install(["apparmor-utils"], self.app_settings):
                raise RuntimeError("apt-get could not install apparmor-utils")

        self._log("Disabling and unloading the runc AppArmor profile...")
        run_elevated_command(
            [
                "ln",
                "-sf",
                str(profile),
                str(static_config.APPARMOR_DISABLE_DIR / profile.name),
            ],
            self.app_settings,
            current_logger=self.logger,
        )
        if run_tolerated_command(
            ["apparmor_parser", "-R", str(profile)],
            self.app_settings,
            reason="the profile was not loaded or was already removed",
            current_logger=self.logger,
        ):
            return OutcomeStatus.INSTALLED
        return OutcomeStatus.TOLERATED_FAILURE

    def purge_previous_kubernetes(self) -> OutcomeStatus:
        self._log(
            f"{self.symbols.get('step', '➡️')} Removing leftovers of a previous Kubernetes install..."
        )
        status = self.reset_kubeadm()
        if not self.apt.purge(
            static_config.KUBERNETES_PURGE_PACKAGES, self.app_settings
        ):
            status = OutcomeStatus.TOLERATED_FAILURE
        if not self.apt.autoremove(self.app_settings):
            status = OutcomeStatus.TOLERATED_FAILURE
        self.remove_kubernetes_state(
            [
                str(static_config.APT_SOURCE_LIST_PATH),
                str(static_config.APT_KEYRING_PATH),
            ]
        )
        if status is OutcomeStatus.SKIPPED:
            return OutcomeStatus.INSTALLED
        return status

    def configure_kubernetes_repository(self, version: VersionSpec) -> None:
        key_url = release_key_url(self.app_settings, version)
        self._log(
            f"{self.symbols.get('step', '➡️')} Configuring the Kubernetes {version.channel} apt repository..."
        )
        armored_key = fetch_text(
            key_url,
            self.app_settings.http_timeout_seconds,
            error_cls=DownloadError,
            current_logger=self.logger,
        )
        if not self.apt.add_dearmored_key(
            armored_key, static_config.APT_KEYRING_PATH, self.app_settings
        ):
            raise RuntimeError(f"could not import the signing key from {key_url}")
        if not self.apt.add_source_list(
            static_config.APT_SOURCE_LIST_PATH,
            apt_source_line(self.app_settings, version),
            self.app_settings,
        ):
            raise RuntimeError(
                f"could not write {static_config.APT_SOURCE_LIST_PATH}"
            )

    def install_kubernetes_tools(self, version: VersionSpec) -> None:
        packages = apt_package_specs(version)
        self.apt.update(self.app_settings, raise_error=True)

        available = self.apt.madison("kubeadm", self.app_settings)
        if available:
            self._log(f"Available kubeadm versions:\n{available.rstrip()}")

        self._log(
            f"{self.symbols.get('package', '📦')} Installing {', '.join(packages)}..."
        )
        # Packages kept by --no-purge (possibly held) move to the requested
        # channel instead of being skipped.
        if not self.apt.install(
            packages,
            self.app_settings,
            update_first=False,
            upgrade_installed=True,
        ):
            hint = (
                " Check the 'apt-cache madison kubeadm' list above for the exact version."
                if version.is_pinned
                else ""
            )
            raise RuntimeError(
                f"apt-get could not install {', '.join(packages)}.{hint}"
            )

        if self.app_settings.kubernetes.hold_packages:
            if not self.apt.hold(
                static_config.KUBERNETES_TOOL_PACKAGES, self.app_settings
            ):
                raise RuntimeError("apt-mark could not hold the Kubernetes packages")
