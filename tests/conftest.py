# tests/conftest.py
import logging
import os
from unittest.mock import MagicMock

import pytest

from node_config.config_models import AppSettings, PathSettings
from node_installer.host_profile import HostProfile


@pytest.fixture(autouse=True)
def clear_kns_environment(monkeypatch):
    """Keep operator KNS_* variables from leaking into settings under test."""
    for key in list(os.environ):
        if key.startswith("KNS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def app_settings(tmp_path):
    """AppSettings whose writable paths point into tmp_path."""
    return AppSettings(
        paths=PathSettings(
            runtime_marker=tmp_path / "container.txt",
            os_release=tmp_path / "os-release",
            crictl_config=tmp_path / "crictl.yaml",
            fstab=tmp_path / "fstab",
        ),
    )


@pytest.fixture
def ubuntu_host():
    return HostProfile(
        distribution_name="Ubuntu",
        distribution_version="22.04",
        architecture="x86_64",
        platform="amd64",
    )


@pytest.fixture
def al2023_host():
    return HostProfile(
        distribution_name="Amazon Linux",
        distribution_version="2023",
        architecture="aarch64",
        platform="arm64",
    )
