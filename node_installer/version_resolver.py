# node_installer/version_resolver.py
# -*- coding: utf-8 -*-
"""
Version resolution for Kubernetes tools and the container runtime.

Kubernetes versions come from the operator or, when none is given, from the
stable release channel. containerd and runc tags come from the GitHub
"latest release" API unless pinned in the settings.
"""

import logging
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from common.command_utils import log_message
from common.network_utils import fetch_json, fetch_text
from node_config.config_models import AppSettings
from node_installer.errors import ReleaseLookupError, VersionFormatError

module_logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(
    r"^v?(?P<major>\d+)\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?"
    r"(?:-(?P<revision>[0-9A-Za-z.~+]+))?$"
)


class VersionSource(str, Enum):
    USER = "user"
    STABLE_CHANNEL = "stable-channel"


class VersionSpec(BaseModel):
    """A resolved Kubernetes version and the package channel it lives in."""

    model_config = ConfigDict(frozen=True)

    raw_user_input: Optional[str] = None
    resolved_full_version: str
    resolved_major_minor: str
    package_revision: Optional[str] = None
    source: VersionSource = VersionSource.USER

    @property
    def channel(self) -> str:
        return f"v{self.resolved_major_minor}"

    @property
    def is_pinned(self) -> bool:
        """True when a patch release was requested."""
        return self.resolved_full_version.count(".") >= 2

    @property
    def kubeadm_version(self) -> Optional[str]:
        if not self.is_pinned:
            return None
        return f"v{self.resolved_full_version}"

    def describe(self) -> str:
        pinned = (
            f"pinned to {self.resolved_full_version}"
            if self.is_pinned
            else "latest patch"
        )
        if self.package_revision:
            pinned += f" (package revision {self.package_revision})"
        return f"channel {self.channel}, {pinned}, source {self.source.value}"


class ReleaseTag(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str
    tag: str

    @property
    def version(self) -> str:
        """The tag without its leading 'v' (v2.0.5 -> 2.0.5)."""
        return self.tag[1:] if self.tag.startswith("v") else self.tag


def parse_version(
    raw: str, source: VersionSource = VersionSource.USER
) -> VersionSpec:
    """
    Validate a version string and derive its package channel.

    Accepted: 1.30, v1.31.0, 1.30.11-1.1 (package revision suffix).

    Raises:
        VersionFormatError: For anything else.
    """
    candidate = (raw or "").strip()
    match = VERSION_PATTERN.match(candidate)
    if not match:
        raise VersionFormatError(
            f"Invalid Kubernetes version '{raw}'. Expected MAJOR.MINOR or "
            "MAJOR.MINOR.PATCH (e.g. 1.30, v1.31.0, 1.30.11-1.1)."
        )
    if match.group("revision") and match.group("patch") is None:
        raise VersionFormatError(
            f"Invalid Kubernetes version '{raw}': a package revision needs a patch version."
        )

    major_minor = f"{int(match.group('major'))}.{int(match.group('minor'))}"
    full_version = major_minor
    if match.group("patch") is not None:
        full_version = f"{major_minor}.{int(match.group('patch'))}"

    return VersionSpec(
        raw_user_input=candidate,
        resolved_full_version=full_version,
        resolved_major_minor=major_minor,
        package_revision=match.group("revision"),
        source=source,
    )


def resolve_kubernetes_version(
    raw: Optional[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> VersionSpec:
    """
    Resolve the Kubernetes version to install.

    A blank or missing `raw` queries the stable release endpoint and treats
    its answer as if the operator had typed it.

    Raises:
        VersionFormatError: The version (given or fetched) is malformed.
        ReleaseLookupError: The stable endpoint could not be read.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols

    if raw is not None and raw.strip():
        spec = parse_version(raw, VersionSource.USER)
    else:
        url = str(app_settings.kubernetes.stable_release_url)
        log_message(
            f"{symbols.get('step', '➡️')} No Kubernetes version given; querying {url}",
            "info",
            logger_to_use,
            app_settings,
        )
        stable_tag = fetch_text(
            url,
            app_settings.http_timeout_seconds,
            error_cls=ReleaseLookupError,
            current_logger=logger_to_use,
        )
        spec = parse_version(stable_tag, VersionSource.STABLE_CHANNEL)

    log_message(
        f"{symbols.get('info', 'ℹ️')} Kubernetes version: {spec.describe()}",
        "info",
        logger_to_use,
        app_settings,
    )
    return spec


def fetch_latest_release_tag(
    project: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> ReleaseTag:
    """
    Look up the latest GitHub release of `project` ('owner/repo').

    Raises:
        ReleaseLookupError: On request failure or a missing/empty tag_name.
    """
    logger_to_use = current_logger if current_logger else module_logger
    url = f"{app_settings.github_api_url}/repos/{project}/releases/latest"
    payload = fetch_json(
        url,
        app_settings.http_timeout_seconds,
        error_cls=ReleaseLookupError,
        current_logger=logger_to_use,
    )
    tag = payload.get("tag_name")
    if not isinstance(tag, str) or not tag.strip():
        raise ReleaseLookupError(
            f"Latest release of {project} has no tag_name ({url})."
        )
    release = ReleaseTag(project=project, tag=tag.strip())
    log_message(
        f"Latest {project} release: {release.tag}",
        "info",
        logger_to_use,
        app_settings,
    )
    return release


def resolve_release_tag(
    project: str,
    configured_version: Optional[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> ReleaseTag:
    """Use `configured_version` when set, otherwise the latest release."""
    if configured_version and configured_version.strip():
        tag = configured_version.strip()
        if not tag.startswith("v"):
            tag = f"v{tag}"
        return ReleaseTag(project=project, tag=tag)
    return fetch_latest_release_tag(project, app_settings, current_logger)
