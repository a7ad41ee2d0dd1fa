# tests/common/test_apt_manager.py
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from common.debian.apt_manager import AptManager


@pytest.fixture
def apt_manager():
    """Fixture to initialize AptManager with mocked dependencies."""
    mock_logger = MagicMock()
    mock_app_settings = MagicMock()
    with (
        patch(
            "common.debian.apt_manager.run_elevated_command"
        ) as mock_run_elevated,
        patch("common.debian.apt_manager.run_command") as mock_run_cmd,
        patch("common.debian.apt_manager.command_exists", return_value=True),
        patch(
            "common.debian.apt_manager.write_config_file"
        ) as mock_write_config,
    ):
        manager = AptManager(logger=mock_logger)
        yield (
            manager,
            mock_logger,
            mock_run_elevated,
            mock_run_cmd,
            mock_write_config,
            mock_app_settings,
        )


def test_init_without_apt_get():
    with patch("common.debian.apt_manager.command_exists", return_value=False):
        with pytest.raises(FileNotFoundError):
            AptManager(logger=MagicMock())


def test_install_new_package(apt_manager):
    """Test installation of a new package."""
    manager, logger, mock_run_elevated, mock_run_cmd, _, mock_app_settings = (
        apt_manager
    )
    mock_run_cmd.side_effect = subprocess.CalledProcessError(1, "cmd")

    assert manager.install(["jq"], mock_app_settings, update_first=False)

    logger.info.assert_any_call("Marking package for installation: jq")
    logger.info.assert_any_call("Committing installation for: jq")
    mock_run_elevated.assert_called_once_with(
        ["apt-get", "install", "-y", "-qq", "jq"],
        mock_app_settings,
        capture_output=False,
        current_logger=logger,
    )


def test_install_already_installed(apt_manager):
    """Test installation of an already installed package."""
    manager, logger, mock_run_elevated, mock_run_cmd, _, mock_app_settings = (
        apt_manager
    )
    mock_run_cmd.return_value = MagicMock(stdout="installed")

    assert manager.install(["jq"], mock_app_settings, update_first=False)

    logger.info.assert_any_call("Package 'jq' is already installed. Skipping.")
    mock_run_elevated.assert_not_called()


def test_install_pinned_specs_skip_installed_check(apt_manager):
    manager, _, mock_run_elevated, mock_run_cmd, _, mock_app_settings = (
        apt_manager
    )
    specs = ["kubelet=1.30.11-1.1", "kubeadm=1.30.11-1.1"]

    manager.install(specs, mock_app_settings, update_first=False)

    mock_run_cmd.assert_not_called()
    assert mock_run_elevated.call_args.args[0] == [
        "apt-get",
        "install",
        "-y",
        "-qq",
        *specs,
    ]


def test_install_updates_first_and_reports_failure(apt_manager):
    manager, _, mock_run_elevated, mock_run_cmd, _, mock_app_settings = (
        apt_manager
    )
    mock_run_cmd.side_effect = subprocess.CalledProcessError(1, "dpkg-query")
    mock_run_elevated.side_effect = [
        MagicMock(),
        subprocess.CalledProcessError(100, "apt-get"),
    ]

    assert manager.install(["kubelet"], mock_app_settings) is False
    assert mock_run_elevated.call_args_list[0].args[0] == [
        "apt-get",
        "update",
        "-qq",
    ]


def test_update_raise_error(apt_manager):
    manager, _, mock_run_elevated, _, _, mock_app_settings = apt_manager
    mock_run_elevated.side_effect = subprocess.CalledProcessError(100, "apt-get")

    assert manager.update(mock_app_settings) is False
    with pytest.raises(subprocess.CalledProcessError):
        manager.update(mock_app_settings, raise_error=True)


def test_purge_failure_is_reported_not_raised(apt_manager):
    manager, logger, mock_run_elevated, _, _, mock_app_settings = apt_manager
    mock_run_elevated.side_effect = subprocess.CalledProcessError(100, "apt-get")

    assert manager.purge(["kubeadm", "kubelet"], mock_app_settings) is False
    logger.error.assert_not_called()
    assert "--allow-change-held-packages" in mock_run_elevated.call_args.args[0]


def test_hold(apt_manager):
    manager, _, mock_run_elevated, _, _, mock_app_settings = apt_manager

    assert manager.hold(["kubelet", "kubeadm", "kubectl"], mock_app_settings)
    assert mock_run_elevated.call_args.args[0] == [
        "apt-mark",
        "hold",
        "kubelet",
        "kubeadm",
        "kubectl",
    ]


def test_madison(apt_manager):
    manager, _, _, mock_run_cmd, _, mock_app_settings = apt_manager
    mock_run_cmd.return_value = MagicMock(
        stdout="kubeadm | 1.30.11-1.1 | https://pkgs.k8s.io/core:/stable:/v1.30/deb  Packages\n"
    )
    assert "1.30.11-1.1" in manager.madison("kubeadm", mock_app_settings)

    mock_run_cmd.side_effect = subprocess.CalledProcessError(1, "apt-cache")
    assert manager.madison("kubeadm", mock_app_settings) is None


def test_add_dearmored_key(apt_manager):
    manager, _, mock_run_elevated, _, _, mock_app_settings = apt_manager
    keyring = Path("/etc/apt/keyrings/kubernetes-apt-keyring.gpg")

    assert manager.add_dearmored_key("-----BEGIN PGP-----", keyring, mock_app_settings)

    calls = mock_run_elevated.call_args_list
    assert calls[0].args[0] == ["install", "-m", "0755", "-d", "/etc/apt/keyrings"]
    assert calls[1].args[0] == [
        "gpg",
        "--batch",
        "--yes",
        "--dearmor",
        "-o",
        str(keyring),
    ]
    assert calls[1].kwargs["cmd_input"] == "-----BEGIN PGP-----"
    assert calls[2].args[0] == ["chmod", "644", str(keyring)]


def test_add_source_list(apt_manager):
    manager, logger, mock_run_elevated, _, mock_write_config, mock_app_settings = (
        apt_manager
    )
    line = "deb [signed-by=/k.gpg] https://pkgs.k8s.io/core:/stable:/v1.30/deb/ /\n"
    list_path = Path("/etc/apt/sources.list.d/kubernetes.list")

    assert manager.add_source_list(list_path, line, mock_app_settings)

    logger.info.assert_any_call(f"Adding repository: {line.strip()}")
    mock_write_config.assert_called_once_with(
        list_path, line, mock_app_settings, current_logger=logger
    )
    mock_run_elevated.assert_not_called()


def test_install_upgrade_installed(apt_manager):
    manager, _, mock_run_elevated, mock_run_cmd, _, mock_app_settings = (
        apt_manager
    )
    mock_run_cmd.return_value = MagicMock(stdout="installed")

    assert manager.install(
        ["kubelet", "kubeadm"],
        mock_app_settings,
        update_first=False,
        upgrade_installed=True,
    )

    mock_run_cmd.assert_not_called()
    assert mock_run_elevated.call_args.args[0] == [
        "apt-get",
        "install",
        "-y",
        "-qq",
        "--allow-change-held-packages",
        "kubelet",
        "kubeadm",
    ]
