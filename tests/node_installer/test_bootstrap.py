# tests/node_installer/test_bootstrap.py
# -*- coding: utf-8 -*-
"""
Workflow tests for the runtime and Kubernetes tools commands.
"""

from unittest.mock import MagicMock

import pytest

from node_config import config as static_config
from node_installer import bootstrap
from node_installer.errors import (
    MissingPrerequisiteError,
    PrivilegeError,
    StepFailedError,
    UnsupportedOSError,
    VersionFormatError,
)
from node_installer.host_profile import HostProfile
from node_installer.outcome import OutcomeReport, OutcomeStatus
from node_installer.version_resolver import parse_version


@pytest.fixture
def as_root(mocker):
    mocker.patch("node_installer.bootstrap.is_running_as_root", return_value=True)


@pytest.fixture
def fake_installer(mocker, ubuntu_host):
    installer = MagicMock()
    installer.host = ubuntu_host
    installer.configure_security.return_value = OutcomeStatus.SKIPPED
    installer.verify_container_runtime.return_value = OutcomeStatus.INSTALLED
    installer.purge_previous_kubernetes.return_value = OutcomeStatus.INSTALLED
    installer.disable_swap.return_value = OutcomeStatus.ALREADY_PRESENT
    installer.report_versions.return_value = OutcomeStatus.INSTALLED
    mocker.patch(
        "node_installer.bootstrap.create_installer", return_value=installer
    )
    return installer


@pytest.fixture
def marker(app_settings):
    app_settings.paths.runtime_marker.write_text("")
    return app_settings.paths.runtime_marker


def test_ensure_privileges(mocker):
    mocker.patch("node_installer.bootstrap.is_running_as_root", return_value=False)
    mocker.patch("node_installer.bootstrap.command_exists", return_value=True)
    bootstrap.ensure_privileges()

    mocker.patch("node_installer.bootstrap.command_exists", return_value=False)
    with pytest.raises(PrivilegeError):
        bootstrap.ensure_privileges()


def test_check_runtime_marker(app_settings, marker, mock_logger):
    bootstrap.check_runtime_marker(app_settings, mock_logger)

    marker.unlink()
    with pytest.raises(MissingPrerequisiteError) as exc_info:
        bootstrap.check_runtime_marker(app_settings, mock_logger)
    assert exc_info.value.exit_code == 4
    assert "runtime" in str(exc_info.value)


def test_check_runtime_marker_skipped(app_settings, mock_logger):
    settings = app_settings.model_copy(
        update={
            "kubernetes": app_settings.kubernetes.model_copy(
                update={"require_runtime_marker": False}
            )
        }
    )
    bootstrap.check_runtime_marker(settings, mock_logger)
    mock_logger.warning.assert_called_once()


def test_next_steps(app_settings):
    minor_only = bootstrap.next_steps(parse_version("1.30"), app_settings)
    assert "sudo kubeadm init --pod-network-cidr=192.168.0.0/16" in minor_only
    assert "--kubernetes-version" not in minor_only
    assert "calico.yaml" in minor_only

    pinned = bootstrap.next_steps(parse_version("1.31.0"), app_settings)
    assert "--kubernetes-version=v1.31.0" in pinned


def test_runtime_workflow_runs_steps_in_order(
    mocker, as_root, fake_installer, app_settings, ubuntu_host
):
    mock_mark = mocker.patch("node_installer.bootstrap.mark_runtime_ready")

    report = bootstrap.run_runtime_workflow(app_settings, host=ubuntu_host)

    assert [o.name for o in report.outcomes] == [
        "Install prerequisites",
        "Configure kernel modules and sysctl",
        "Install containerd and runc",
        "Configure security profile",
        "Verify container runtime",
        "Write runtime marker",
    ]
    assert report.outcomes[3].status is OutcomeStatus.SKIPPED
    mock_mark.assert_called_once()
    assert mock_mark.call_args.args[0] is app_settings


def test_runtime_workflow_verification_is_not_fatal(
    mocker, as_root, fake_installer, app_settings, ubuntu_host
):
    mock_mark = mocker.patch("node_installer.bootstrap.mark_runtime_ready")
    fake_installer.verify_container_runtime.side_effect = RuntimeError("crictl")

    report = bootstrap.run_runtime_workflow(app_settings, host=ubuntu_host)

    assert report.by_status(OutcomeStatus.TOLERATED_FAILURE)[0].name == (
        "Verify container runtime"
    )
    mock_mark.assert_called_once()


def test_runtime_workflow_stops_before_marker(
    mocker, as_root, fake_installer, app_settings, ubuntu_host
):
    mock_mark = mocker.patch("node_installer.bootstrap.mark_runtime_ready")
    fake_installer.install_container_runtime.side_effect = RuntimeError("tar")
    report = OutcomeReport()

    with pytest.raises(StepFailedError):
        bootstrap.run_runtime_workflow(app_settings, host=ubuntu_host, report=report)

    mock_mark.assert_not_called()
    assert report.has_failures


def test_runtime_workflow_unsupported_host(as_root, app_settings):
    host = HostProfile(
        distribution_name="Ubuntu",
        distribution_version="18.04",
        architecture="x86_64",
        platform="amd64",
    )
    with pytest.raises(UnsupportedOSError):
        bootstrap.run_runtime_workflow(app_settings, host=host)


def test_kubetools_requires_marker(as_root, fake_installer, app_settings, ubuntu_host):
    with pytest.raises(MissingPrerequisiteError):
        bootstrap.run_kubetools_workflow(app_settings, "1.30", host=ubuntu_host)

    fake_installer.purge_previous_kubernetes.assert_not_called()
    fake_installer.install_prerequisites.assert_not_called()


def test_kubetools_invalid_version_touches_nothing(
    as_root, fake_installer, marker, app_settings, ubuntu_host
):
    with pytest.raises(VersionFormatError):
        bootstrap.run_kubetools_workflow(app_settings, "latest", host=ubuntu_host)

    assert fake_installer.mock_calls == []


def test_kubetools_workflow_steps(
    as_root, fake_installer, marker, app_settings, ubuntu_host
):
    report = OutcomeReport()

    version = bootstrap.run_kubetools_workflow(
        app_settings, "1.30", host=ubuntu_host, report=report
    )

    assert version.channel == "v1.30"
    assert [o.name for o in report.outcomes] == [
        "Purge previous Kubernetes install",
        "Install prerequisites",
        "Configure Kubernetes v1.30 repository",
        "Configure kernel modules and sysctl",
        "Install kubelet, kubeadm and kubectl",
        "Disable swap",
        "Configure crictl",
        "Enable kubelet",
        "Report installed versions",
    ]
    fake_installer.configure_kubernetes_repository.assert_called_once_with(version)
    fake_installer.install_kubernetes_tools.assert_called_once_with(version)


def test_kubetools_without_purge(
    as_root, fake_installer, marker, app_settings, ubuntu_host
):
    settings = app_settings.model_copy(
        update={
            "kubernetes": app_settings.kubernetes.model_copy(
                update={"purge_previous_install": False, "version": "v1.31.0"}
            )
        }
    )

    version = bootstrap.run_kubetools_workflow(settings, host=ubuntu_host)

    assert version.resolved_full_version == "1.31.0"
    fake_installer.purge_previous_kubernetes.assert_not_called()


def test_kubetools_purge_skipped_is_reported(
    as_root, fake_installer, marker, app_settings, ubuntu_host
):
    settings = app_settings.model_copy(
        update={
            "kubernetes": app_settings.kubernetes.model_copy(
                update={"purge_previous_install": False}
            )
        }
    )
    report = OutcomeReport()

    bootstrap.run_kubetools_workflow(settings, "1.30", host=ubuntu_host, report=report)

    first = report.outcomes[0]
    assert first.status is OutcomeStatus.SKIPPED
    assert first.detail == "disabled"


def test_kubetools_end_to_end_on_amazon_linux_arm64(
    mocker, as_root, marker, app_settings, al2023_host
):
    """Fresh AL2023 arm64 node, operator asks for 1.30."""
    mocker.patch("common.redhat.dnf_manager.command_exists", return_value=True)
    dnf_elevated = mocker.patch("common.redhat.dnf_manager.run_elevated_command")
    dnf_write = mocker.patch("common.redhat.dnf_manager.write_config_file")
    base_write = mocker.patch("node_installer.base_installer.write_config_file")
    mocker.patch("node_installer.base_installer.load_kernel_modules")
    mocker.patch("node_installer.base_installer.apply_sysctl")
    mocker.patch("node_installer.base_installer.remove_paths")
    mocker.patch("node_installer.base_installer.command_exists", return_value=False)
    mocker.patch(
        "node_installer.base_installer.run_tolerated_command", return_value=True
    )
    mocker.patch("node_installer.base_installer.systemd_reload")
    mock_enable = mocker.patch("node_installer.base_installer.enable_service")
    mocker.patch("node_installer.base_installer.disable_swap", return_value=0)
    mock_fetch = mocker.patch("node_installer.version_resolver.fetch_text")

    report = OutcomeReport()
    version = bootstrap.run_kubetools_workflow(
        app_settings, "1.30", host=al2023_host, report=report
    )

    assert version.channel == "v1.30"
    assert not version.is_pinned
    mock_fetch.assert_not_called()
    assert not report.has_failures

    written = {c.args[0]: c.args[1] for c in base_write.call_args_list}
    assert written[static_config.MODULES_LOAD_PATH] == "overlay\nbr_netfilter\n"
    assert "net.bridge.bridge-nf-call-iptables  = 1" in written[static_config.SYSCTL_CONF_PATH]

    repo_path, repo_content = dnf_write.call_args.args[:2]
    assert repo_path == static_config.YUM_REPO_PATH
    assert "baseurl=https://pkgs.k8s.io/core:/stable:/v1.30/rpm/" in repo_content

    dnf_commands = [c.args[0] for c in dnf_elevated.call_args_list]
    assert [
        "dnf",
        "install",
        "-y",
        "--disableexcludes=kubernetes",
        "kubelet",
        "kubeadm",
        "kubectl",
    ] in dnf_commands
    assert ["dnf", "versionlock", "add", "kubelet", "kubeadm", "kubectl"] in dnf_commands
    mock_enable.assert_called_once_with(
        "kubelet", app_settings, current_logger=mocker.ANY
    )
