# node_installer/host_profile.py
# -*- coding: utf-8 -*-
"""
Environment prober: OS identity and CPU architecture of the current host.

The result is a frozen HostProfile that every later stage receives
explicitly. Deciding whether the OS is supported is a separate step
(detect_os_family) so that `probe` can report on unsupported hosts too.
"""

import logging
import platform as platform_module
import re
import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from common.command_utils import command_exists, log_message, run_command
from node_config import config as static_config
from node_config.config_models import AppSettings
from node_installer.errors import (
    OSDetectionError,
    UnsupportedArchitectureError,
    UnsupportedOSError,
)

module_logger = logging.getLogger(__name__)

_HOSTNAMECTL_OS_LINE = re.compile(
    r"^\s*Operating System:\s*(?P<name>[^\d\s][^\d]*?)\s+(?P<version>\d[\w.]*)"
)


class OsFamily(str, Enum):
    UBUNTU = "ubuntu"
    AMAZON_LINUX = "amazon_linux"
    UNSUPPORTED = "unsupported"


class HostProfile(BaseModel):
    """Immutable description of the host the installer runs on."""

    model_config = ConfigDict(frozen=True)

    distribution_name: str
    distribution_version: str
    architecture: str
    platform: str

    @property
    def major_version(self) -> Optional[int]:
        """Integer prefix of the distribution version, or None."""
        match = re.match(r"^(\d+)", self.distribution_version)
        return int(match.group(1)) if match else None

    @property
    def os_family(self) -> OsFamily:
        if self.distribution_name == static_config.AMAZON_LINUX_OS_NAME:
            if self.distribution_version.startswith(
                static_config.AMAZON_LINUX_VERSION_PREFIX
            ):
                return OsFamily.AMAZON_LINUX
            return OsFamily.UNSUPPORTED
        if self.distribution_name == static_config.UBUNTU_OS_NAME:
            major = self.major_version
            if major is not None and major >= static_config.UBUNTU_MIN_MAJOR_VERSION:
                return OsFamily.UBUNTU
        return OsFamily.UNSUPPORTED

    def describe(self) -> str:
        return (
            f"{self.distribution_name} {self.distribution_version} "
            f"({self.architecture} -> {self.platform})"
        )


def normalize_architecture(machine: str) -> str:
    """
    Map a kernel machine name to the platform tag used by release assets.

    Raises:
        UnsupportedArchitectureError: For anything but x86_64 and aarch64.
            Names are matched exactly, as uname reports them.
    """
    platform_tag = static_config.ARCHITECTURE_PLATFORM_MAP.get(machine)
    if platform_tag is None:
        raise UnsupportedArchitectureError(
            f"Unsupported architecture: '{machine}'. Supported: "
            f"{', '.join(sorted(static_config.ARCHITECTURE_PLATFORM_MAP))}."
        )
    return platform_tag


def parse_os_release(text: str) -> Dict[str, str]:
    """
    Parse os-release content into a dict.

    Lines are shell-style KEY=value assignments with optional quoting.
    Comments, blank lines and lines without '=' are ignored.
    """
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw_value = line.partition("=")
        key = key.strip()
        try:
            tokens = shlex.split(raw_value, comments=False, posix=True)
        except ValueError:
            # Unbalanced quotes; keep the raw text without surrounding quotes.
            tokens = [raw_value.strip().strip("\"'")]
        values[key] = " ".join(tokens)
    return values


def parse_hostnamectl(text: str) -> Optional[Tuple[str, str]]:
    """
    Extract (name, version) from `hostnamectl` output, e.g.
    'Operating System: Ubuntu 22.04.4 LTS' -> ('Ubuntu', '22.04.4').
    """
    for line in text.splitlines():
        match = _HOSTNAMECTL_OS_LINE.match(line)
        if match:
            return match.group("name").strip(), match.group("version")
    return None


def _read_os_identity(
    os_release_path: Path,
    app_settings: AppSettings,
    logger_to_use: logging.Logger,
) -> Tuple[str, str]:
    if os_release_path.is_file():
        try:
            values = parse_os_release(
                os_release_path.read_text(encoding="utf-8")
            )
        except (OSError, UnicodeDecodeError) as e:
            raise OSDetectionError(
                f"Could not read {os_release_path}: {e}"
            ) from e
        name = values.get("NAME", "")
        version = values.get("VERSION_ID", "")
        if name and version:
            return name, version
        raise OSDetectionError(
            f"{os_release_path} does not define both NAME and VERSION_ID."
        )

    log_message(
        f"{os_release_path} not found; falling back to hostnamectl.",
        "warning",
        logger_to_use,
        app_settings,
    )
    if not command_exists("hostnamectl"):
        raise OSDetectionError(
            f"Cannot determine the OS: {os_release_path} is missing and hostnamectl is not available."
        )
    try:
        result = run_command(
            ["hostnamectl"],
            app_settings,
            capture_output=True,
            check=True,
            current_logger=logger_to_use,
        )
    except subprocess.CalledProcessError as e:
        raise OSDetectionError(f"hostnamectl failed: {e}") from e

    identity = parse_hostnamectl(result.stdout or "")
    if identity is None:
        raise OSDetectionError(
            "Could not find an 'Operating System' line in hostnamectl output."
        )
    return identity


def probe_host(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    machine: Optional[str] = None,
) -> HostProfile:
    """
    Build the HostProfile for the current machine.

    Args:
        app_settings: Settings providing the os-release path.
        current_logger: Optional logger.
        machine: Override for the kernel machine name (platform.machine()).

    Raises:
        UnsupportedArchitectureError: The CPU architecture is not supported.
        OSDetectionError: No OS identity could be read.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols

    architecture = machine if machine is not None else platform_module.machine()
    platform_tag = normalize_architecture(architecture)
    name, version = _read_os_identity(
        Path(app_settings.paths.os_release), app_settings, logger_to_use
    )

    profile = HostProfile(
        distribution_name=name,
        distribution_version=version,
        architecture=architecture,
        platform=platform_tag,
    )
    log_message(
        f"{symbols.get('info', 'ℹ️')} Detected host: {profile.describe()}",
        "info",
        logger_to_use,
        app_settings,
    )
    return profile


def detect_os_family(profile: HostProfile) -> OsFamily:
    """
    Return the installer branch for `profile`.

    Raises:
        UnsupportedOSError: When the distribution/version is not supported.
    """
    family = profile.os_family
    if family is OsFamily.UNSUPPORTED:
        raise UnsupportedOSError(
            f"Unsupported OS: {profile.distribution_name} {profile.distribution_version}. "
            f"Supported: {static_config.UBUNTU_OS_NAME} {static_config.UBUNTU_MIN_MAJOR_VERSION}.04+ "
            f"and {static_config.AMAZON_LINUX_OS_NAME} {static_config.AMAZON_LINUX_VERSION_PREFIX}."
        )
    return family
