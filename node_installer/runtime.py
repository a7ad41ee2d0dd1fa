# node_installer/runtime.py
# -*- coding: utf-8 -*-
"""
containerd and runc installation from upstream release binaries.

The flow is identical on every supported distribution: the release tarball is
unpacked into /usr/local, runc is installed into /usr/local/sbin, the upstream
systemd unit is placed under /etc/systemd/system and the service is enabled.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from common.command_utils import (
    command_exists,
    get_symbols,
    log_message,
    run_elevated_command,
    run_tolerated_command,
)
from common.file_utils import install_file, touch_file, write_config_file
from common.network_utils import download_file
from common.system_utils import enable_service, is_service_active, systemd_reload
from node_config import config as static_config
from node_config.config_models import AppSettings
from node_installer.host_profile import HostProfile
from node_installer.outcome import OutcomeStatus
from node_installer.version_resolver import ReleaseTag, resolve_release_tag

module_logger = logging.getLogger(__name__)


def containerd_archive_url(
    app_settings: AppSettings, release: ReleaseTag, platform: str
) -> str:
    version = release.version
    return (
        f"{app_settings.github_download_url}/{static_config.CONTAINERD_REPO}"
        f"/releases/download/v{version}/containerd-{version}-linux-{platform}.tar.gz"
    )


def runc_binary_url(
    app_settings: AppSettings, release: ReleaseTag, platform: str
) -> str:
    return (
        f"{app_settings.github_download_url}/{static_config.RUNC_REPO}"
        f"/releases/download/{release.tag}/runc.{platform}"
    )


def install_containerd(
    host: HostProfile,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> ReleaseTag:
    """Download the containerd release tarball and unpack it into /usr/local."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    release = resolve_release_tag(
        static_config.CONTAINERD_REPO,
        app_settings.containerd.version,
        app_settings,
        logger_to_use,
    )
    url = containerd_archive_url(app_settings, release, host.platform)
    log_message(
        f"{symbols.get('package', '📦')} Installing containerd {release.version} for {host.platform}...",
        "info",
        logger_to_use,
        app_settings,
    )
    with tempfile.TemporaryDirectory(prefix="kns_") as temp_dir:
        archive = download_file(
            url,
            Path(temp_dir) / url.rsplit("/", 1)[-1],
            app_settings.http_timeout_seconds,
            current_logger=logger_to_use,
        )
        run_elevated_command(
            [
                "tar",
                "Cxzvf",
                str(static_config.CONTAINERD_INSTALL_PREFIX),
                str(archive),
            ],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
        )
    return release


def write_containerd_config(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    write_config_file(
        static_config.CONTAINERD_CONFIG_PATH,
        static_config.CONTAINERD_CONFIG_CONTENT,
        app_settings,
        current_logger=current_logger,
    )


def install_runc(
    host: HostProfile,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> ReleaseTag:
    """Download the runc binary and install it with mode 755."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    release = resolve_release_tag(
        static_config.RUNC_REPO,
        app_settings.containerd.runc_version,
        app_settings,
        logger_to_use,
    )
    log_message(
        f"{symbols.get('package', '📦')} Installing runc {release.tag} for {host.platform}...",
        "info",
        logger_to_use,
        app_settings,
    )
    with tempfile.TemporaryDirectory(prefix="kns_") as temp_dir:
        binary = download_file(
            runc_binary_url(app_settings, release, host.platform),
            Path(temp_dir) / f"runc.{host.platform}",
            app_settings.http_timeout_seconds,
            current_logger=logger_to_use,
        )
        install_file(
            binary,
            static_config.RUNC_INSTALL_PATH,
            app_settings,
            mode="755",
            current_logger=logger_to_use,
        )
    return release


def install_containerd_unit(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Place the upstream containerd.service under /etc/systemd/system."""
    with tempfile.TemporaryDirectory(prefix="kns_") as temp_dir:
        unit = download_file(
            str(app_settings.containerd.service_unit_url),
            Path(temp_dir) / "containerd.service",
            app_settings.http_timeout_seconds,
            current_logger=current_logger,
        )
        install_file(
            unit,
            static_config.CONTAINERD_UNIT_PATH,
            app_settings,
            mode="644",
            current_logger=current_logger,
        )


def install_container_runtime(
    host: HostProfile,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Install containerd and runc, configure containerd and start it."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    containerd_release = install_containerd(host, app_settings, logger_to_use)
    write_containerd_config(app_settings, logger_to_use)
    runc_release = install_runc(host, app_settings, logger_to_use)
    install_containerd_unit(app_settings, logger_to_use)
    systemd_reload(app_settings, logger_to_use)
    enable_service("containerd", app_settings, current_logger=logger_to_use)
    log_message(
        f"{symbols.get('success', '✅')} containerd {containerd_release.version} and runc {runc_release.tag} installed; containerd enabled and started.",
        "success",
        logger_to_use,
        app_settings,
    )


def verify_container_runtime(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> OutcomeStatus:
    """
    Check that containerd is running and crictl can talk to it.

    Problems are logged but never raised.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    status = OutcomeStatus.INSTALLED

    if is_service_active("containerd", app_settings, logger_to_use):
        log_message(
            f"{symbols.get('success', '✅')} containerd service is active.",
            "success",
            logger_to_use,
            app_settings,
        )
    else:
        log_message(
            f"{symbols.get('error', '❌')} containerd service is NOT active. Check the logs with "
            "'sudo journalctl -xeu containerd' and 'systemctl status containerd'.",
            "error",
            logger_to_use,
            app_settings,
        )
        status = OutcomeStatus.TOLERATED_FAILURE

    if not command_exists("crictl"):
        log_message(
            f"{symbols.get('warning', '⚠️')} crictl not found; skipping CRI verification. "
            "Install cri-tools to inspect the runtime.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return status

    endpoint = static_config.CONTAINERD_SOCKET
    for subcommand in ("version", "pods"):
        if not run_tolerated_command(
            ["crictl", "--runtime-endpoint", endpoint, subcommand],
            app_settings,
            reason=f"crictl {subcommand} could not reach {endpoint}",
            capture_output=False,
            current_logger=logger_to_use,
        ):
            status = OutcomeStatus.TOLERATED_FAILURE
    return status


def mark_runtime_ready(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Touch the marker file the Kubernetes tools workflow checks for."""
    touch_file(
        app_settings.paths.runtime_marker,
        app_settings,
        current_logger=current_logger,
    )
