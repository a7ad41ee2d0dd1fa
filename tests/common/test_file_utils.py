from pathlib import Path

import pytest

from common.file_utils import (
    backup_file,
    install_file,
    remove_paths,
    touch_file,
    write_config_file,
)


@pytest.fixture
def mock_elevated(mocker):
    return mocker.patch("common.file_utils.run_elevated_command")


def test_write_config_file_stages_and_copies(mock_elevated, app_settings, tmp_path):
    staged = {}

    def capture(command, *args, **kwargs):
        if command[0] == "cp":
            staged["content"] = Path(command[1]).read_text(encoding="utf-8")
            staged["temp"] = command[1]

    mock_elevated.side_effect = capture
    target = tmp_path / "etc" / "modules-load.d" / "containerd.conf"

    write_config_file(target, "overlay\nbr_netfilter\n", app_settings)

    commands = [c.args[0] for c in mock_elevated.call_args_list]
    assert commands[0] == ["mkdir", "-p", str(target.parent)]
    assert commands[1][0] == "cp" and commands[1][2] == str(target)
    assert commands[2] == ["chmod", "644", str(target)]
    assert staged["content"] == "overlay\nbr_netfilter\n"
    assert not Path(staged["temp"]).exists()


def test_write_config_file_is_repeatable(mock_elevated, app_settings, tmp_path):
    target = tmp_path / "crictl.yaml"

    write_config_file(target, "a: 1\n", app_settings)
    first = [c.args[0][0] for c in mock_elevated.call_args_list]
    mock_elevated.reset_mock()
    write_config_file(target, "a: 1\n", app_settings)
    second = [c.args[0][0] for c in mock_elevated.call_args_list]

    assert first == second == ["mkdir", "cp", "chmod"]


def test_install_file_uses_mode(mock_elevated, app_settings):
    install_file("/tmp/runc.arm64", "/usr/local/sbin/runc", app_settings, mode="755")

    mock_elevated.assert_called_once_with(
        ["install", "-D", "-m", "755", "/tmp/runc.arm64", "/usr/local/sbin/runc"],
        app_settings,
        current_logger=None,
    )


def test_backup_file_missing_returns_none(mock_elevated, app_settings, tmp_path):
    assert backup_file(tmp_path / "missing", app_settings) is None
    mock_elevated.assert_not_called()


def test_backup_file_explicit_path(mock_elevated, app_settings, tmp_path):
    fstab = tmp_path / "fstab"
    fstab.write_text("UUID=x / ext4 defaults 0 1\n")

    result = backup_file(fstab, app_settings, backup_path=f"{fstab}.bak")

    assert result == f"{fstab}.bak"
    assert mock_elevated.call_args.args[0] == ["cp", "-a", str(fstab), f"{fstab}.bak"]


def test_remove_paths_only_existing(mock_elevated, app_settings, tmp_path):
    present = tmp_path / "kubelet"
    present.mkdir()

    remove_paths([present, tmp_path / "absent"], app_settings)

    mock_elevated.assert_called_once()
    assert mock_elevated.call_args.args[0] == ["rm", "-rf", str(present)]


def test_remove_paths_nothing_to_do(mock_elevated, app_settings, tmp_path):
    remove_paths([tmp_path / "absent"], app_settings)
    mock_elevated.assert_not_called()


def test_touch_file(mock_elevated, app_settings, tmp_path):
    touch_file(tmp_path / "container.txt", app_settings)
    assert mock_elevated.call_args.args[0] == ["touch", str(tmp_path / "container.txt")]
