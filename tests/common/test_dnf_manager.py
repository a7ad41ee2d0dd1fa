# tests/common/test_dnf_manager.py
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from common.redhat.dnf_manager import VERSIONLOCK_PLUGIN_PACKAGE, DnfManager


@pytest.fixture
def dnf_manager():
    """Fixture to initialize DnfManager with mocked dependencies."""
    mock_logger = MagicMock()
    mock_app_settings = MagicMock()
    with (
        patch(
            "common.redhat.dnf_manager.run_elevated_command"
        ) as mock_run_elevated,
        patch("common.redhat.dnf_manager.command_exists", return_value=True),
        patch(
            "common.redhat.dnf_manager.write_config_file"
        ) as mock_write_config,
    ):
        manager = DnfManager(logger=mock_logger)
        yield (
            manager,
            mock_logger,
            mock_run_elevated,
            mock_write_config,
            mock_app_settings,
        )


def test_init_without_dnf():
    with patch("common.redhat.dnf_manager.command_exists", return_value=False):
        with pytest.raises(FileNotFoundError):
            DnfManager(logger=MagicMock())


def test_install_plain(dnf_manager):
    manager, logger, mock_run_elevated, _, mock_app_settings = dnf_manager

    assert manager.install(["kubelet", "kubeadm", "kubectl"], mock_app_settings)

    mock_run_elevated.assert_called_once_with(
        ["dnf", "install", "-y", "kubelet", "kubeadm", "kubectl"],
        mock_app_settings,
        current_logger=logger,
    )


def test_install_with_flags(dnf_manager):
    manager, _, mock_run_elevated, _, mock_app_settings = dnf_manager

    manager.install(
        "curl",
        mock_app_settings,
        allow_erasing=True,
        disable_excludes="kubernetes",
    )

    assert mock_run_elevated.call_args.args[0] == [
        "dnf",
        "install",
        "-y",
        "--allowerasing",
        "--disableexcludes=kubernetes",
        "curl",
    ]


def test_install_failure(dnf_manager):
    manager, logger, mock_run_elevated, _, mock_app_settings = dnf_manager
    mock_run_elevated.side_effect = subprocess.CalledProcessError(1, "dnf")

    assert manager.install(["kubelet"], mock_app_settings) is False
    logger.error.assert_called_once()


def test_remove_failure_logged_at_info(dnf_manager):
    manager, logger, mock_run_elevated, _, mock_app_settings = dnf_manager
    mock_run_elevated.side_effect = subprocess.CalledProcessError(1, "dnf")

    assert manager.remove(["kubeadm"], mock_app_settings) is False
    logger.error.assert_not_called()
    assert mock_run_elevated.call_args.args[0] == ["dnf", "remove", "-y", "kubeadm"]


def test_autoremove(dnf_manager):
    manager, _, mock_run_elevated, _, mock_app_settings = dnf_manager

    assert manager.autoremove(mock_app_settings)
    assert mock_run_elevated.call_args.args[0] == ["dnf", "autoremove", "-y"]


def test_versionlock_installs_plugin_first(dnf_manager):
    manager, _, mock_run_elevated, _, mock_app_settings = dnf_manager

    assert manager.versionlock(["kubelet", "kubeadm"], mock_app_settings)

    commands = [c.args[0] for c in mock_run_elevated.call_args_list]
    assert commands == [
        ["dnf", "install", "-y", VERSIONLOCK_PLUGIN_PACKAGE],
        ["dnf", "versionlock", "add", "kubelet", "kubeadm"],
    ]


def test_versionlock_without_plugin(dnf_manager):
    manager, logger, mock_run_elevated, _, mock_app_settings = dnf_manager
    mock_run_elevated.side_effect = subprocess.CalledProcessError(1, "dnf")

    assert manager.versionlock(["kubelet"], mock_app_settings) is False
    logger.warning.assert_called_once()
    assert mock_run_elevated.call_count == 1


def test_versionlock_delete(dnf_manager):
    manager, _, mock_run_elevated, _, mock_app_settings = dnf_manager

    assert manager.versionlock_delete(
        ["kubelet", "kubeadm", "kubectl"], mock_app_settings
    )
    assert mock_run_elevated.call_args.args[0] == [
        "dnf",
        "versionlock",
        "delete",
        "kubelet",
        "kubeadm",
        "kubectl",
    ]


def test_versionlock_delete_nothing_locked(dnf_manager):
    manager, logger, mock_run_elevated, _, mock_app_settings = dnf_manager
    mock_run_elevated.side_effect = subprocess.CalledProcessError(1, "dnf")

    assert manager.versionlock_delete(["kubelet"], mock_app_settings) is False
    logger.error.assert_not_called()
    logger.warning.assert_not_called()


def test_add_repository(dnf_manager):
    manager, logger, _, mock_write_config, mock_app_settings = dnf_manager
    repo_path = Path("/etc/yum.repos.d/kubernetes.repo")

    assert manager.add_repository(repo_path, "[kubernetes]\n", mock_app_settings)
    mock_write_config.assert_called_once_with(
        repo_path, "[kubernetes]\n", mock_app_settings, current_logger=logger
    )


def test_add_repository_failure(dnf_manager):
    manager, _, _, mock_write_config, mock_app_settings = dnf_manager
    mock_write_config.side_effect = subprocess.CalledProcessError(1, "cp")

    assert (
        manager.add_repository(
            Path("/etc/yum.repos.d/kubernetes.repo"), "x", mock_app_settings
        )
        is False
    )
