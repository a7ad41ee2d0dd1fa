# node_config/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines the structured settings for the node setup tool,
including defaults, type annotations, and descriptions.
It utilizes Pydantic for data validation and settings management.
"""

from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from node_config import config as static_config


class PathSettings(BaseModel):
    """Filesystem locations written by the installer."""

    runtime_marker: Path = Field(
        default=static_config.RUNTIME_MARKER_PATH,
        description="Marker file signalling that the container runtime setup completed.",
    )
    os_release: Path = Field(
        default=static_config.OS_RELEASE_PATH,
        description="OS identification file read by the host prober.",
    )
    crictl_config: Path = Field(
        default=static_config.CRICTL_CONFIG_PATH,
        description="crictl configuration file.",
    )
    fstab: Path = Field(
        default=static_config.FSTAB_PATH,
        description="fstab edited to disable swap.",
    )


class ContainerdSettings(BaseSettings):
    """containerd / runc release selection."""

    model_config = SettingsConfigDict(
        env_prefix="KNS_CONTAINERD_", extra="ignore"
    )

    version: Optional[str] = Field(
        default=None,
        description="containerd version to install (e.g. 2.0.5). Latest GitHub release if unset.",
    )
    runc_version: Optional[str] = Field(
        default=None,
        description="runc release tag to install (e.g. v1.2.6). Latest GitHub release if unset.",
    )
    service_unit_url: Union[HttpUrl, str] = Field(
        default=static_config.CONTAINERD_SERVICE_URL_DEFAULT,
        description="URL of the upstream containerd systemd unit.",
    )


class KubernetesSettings(BaseSettings):
    """Kubernetes tool installation settings."""

    model_config = SettingsConfigDict(env_prefix="KNS_K8S_", extra="ignore")

    version: Optional[str] = Field(
        default=None,
        description="Kubernetes version (1.30, v1.31.0, 1.30.11-1.1). Latest stable if unset.",
    )
    stable_release_url: Union[HttpUrl, str] = Field(
        default=static_config.STABLE_RELEASE_URL_DEFAULT,
        description="Endpoint returning the latest stable Kubernetes tag.",
    )
    packages_base_url: str = Field(
        default=static_config.K8S_PACKAGES_URL_DEFAULT,
        description="Base URL of the community Kubernetes package repositories.",
    )
    purge_previous_install: bool = Field(
        default=True,
        description="Reset kubeadm and remove old Kubernetes packages/state before installing.",
    )
    require_runtime_marker: bool = Field(
        default=True,
        description="Refuse to install Kubernetes tools unless the runtime marker file exists.",
    )
    hold_packages: bool = Field(
        default=True,
        description="Hold (apt) or versionlock (dnf) the installed tool packages.",
    )
    disable_swap: bool = Field(
        default=True, description="Turn swap off and comment it out of fstab."
    )
    pod_network_cidr: str = Field(
        default=static_config.POD_NETWORK_CIDR_DEFAULT,
        description="Pod CIDR suggested in the kubeadm init hint.",
    )
    cni_manifest_url: str = Field(
        default=static_config.CALICO_MANIFEST_URL_DEFAULT,
        description="CNI manifest suggested after kubeadm init.",
    )


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(env_prefix="KNS_", extra="ignore")

    log_prefix: str = Field(
        default=static_config.LOG_PREFIX_DEFAULT,
        description="Prefix for log messages.",
    )
    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout applied to every HTTP request.",
    )
    github_api_url: str = Field(
        default=static_config.GITHUB_API_URL_DEFAULT,
        description="GitHub REST API base URL used for release lookups.",
    )
    github_download_url: str = Field(
        default=static_config.GITHUB_DOWNLOAD_URL_DEFAULT,
        description="Base URL for GitHub release asset downloads.",
    )

    containerd: ContainerdSettings = Field(default_factory=ContainerdSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    paths: PathSettings = Field(default_factory=PathSettings)

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(static_config.SYMBOLS_DEFAULT)
    )

    @field_validator("github_api_url", "github_download_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
