# node_config/config.py
# -*- coding: utf-8 -*-
"""
Centralized constants and static file contents for the node setup.

This module defines default global values, fixed system paths, package lists
for each supported distribution and the exact content of every configuration
file the installer writes. Values that operators may want to override live in
node_config.config_models instead.
"""

from pathlib import Path

# --- Default Global Variable Values ---
LOG_PREFIX_DEFAULT: str = "[NODE-SETUP]"
SCRIPT_VERSION: str = "0.4.0"

STABLE_RELEASE_URL_DEFAULT: str = "https://dl.k8s.io/release/stable.txt"
GITHUB_API_URL_DEFAULT: str = "https://api.github.com"
GITHUB_DOWNLOAD_URL_DEFAULT: str = "https://github.com"
K8S_PACKAGES_URL_DEFAULT: str = "https://pkgs.k8s.io/core:/stable:"
CONTAINERD_SERVICE_URL_DEFAULT: str = (
    "https://raw.githubusercontent.com/containerd/containerd/main/containerd.service"
)
CALICO_MANIFEST_URL_DEFAULT: str = (
    "https://raw.githubusercontent.com/projectcalico/calico/v3.28.0/manifests/calico.yaml"
)
POD_NETWORK_CIDR_DEFAULT: str = "192.168.0.0/16"

CONTAINERD_REPO: str = "containerd/containerd"
RUNC_REPO: str = "opencontainers/runc"

CONTAINERD_SOCKET: str = "unix:///run/containerd/containerd.sock"

# --- Architecture / OS identity ---
ARCHITECTURE_PLATFORM_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "aarch64": "arm64",
}

UBUNTU_OS_NAME: str = "Ubuntu"
AMAZON_LINUX_OS_NAME: str = "Amazon Linux"
AMAZON_LINUX_VERSION_PREFIX: str = "2023"
UBUNTU_MIN_MAJOR_VERSION: int = 20

OS_RELEASE_PATH: Path = Path("/etc/os-release")

# --- Fixed system paths ---
RUNTIME_MARKER_PATH: Path = Path("/tmp/container.txt")
MODULES_LOAD_PATH: Path = Path("/etc/modules-load.d/containerd.conf")
SYSCTL_CONF_PATH: Path = Path("/etc/sysctl.d/99-kubernetes-cri.conf")
CONTAINERD_CONFIG_PATH: Path = Path("/etc/containerd/config.toml")
CONTAINERD_INSTALL_PREFIX: Path = Path("/usr/local")
CONTAINERD_UNIT_PATH: Path = Path("/etc/systemd/system/containerd.service")
RUNC_INSTALL_PATH: Path = Path("/usr/local/sbin/runc")
CRICTL_CONFIG_PATH: Path = Path("/etc/crictl.yaml")
FSTAB_PATH: Path = Path("/etc/fstab")

APPARMOR_RUNC_PROFILE: Path = Path("/etc/apparmor.d/runc")
APPARMOR_DISABLE_DIR: Path = Path("/etc/apparmor.d/disable")
SELINUX_CONFIG_PATH: Path = Path("/etc/selinux/config")

APT_KEYRING_PATH: Path = Path("/etc/apt/keyrings/kubernetes-apt-keyring.gpg")
APT_SOURCE_LIST_PATH: Path = Path("/etc/apt/sources.list.d/kubernetes.list")
YUM_REPO_PATH: Path = Path("/etc/yum.repos.d/kubernetes.repo")

# Removed by the purge step before a fresh Kubernetes install.
KUBERNETES_STATE_PATHS: list[str] = [
    "/etc/cni",
    "/etc/kubernetes",
    "/var/lib/dockershim",
    "/var/lib/etcd",
    "/var/lib/kubelet",
    "/var/run/kubernetes",
]

# --- Package Lists ---
KUBERNETES_TOOL_PACKAGES: list[str] = ["kubelet", "kubeadm", "kubectl"]
KUBERNETES_PURGE_PACKAGES: list[str] = [
    "kubeadm",
    "kubectl",
    "kubelet",
    "kubernetes-cni",
]
YUM_REPO_EXCLUDES: list[str] = [
    "kubelet",
    "kubeadm",
    "kubectl",
    "cri-tools",
    "kubernetes-cni",
]

UBUNTU_PREREQ_PACKAGES: list[str] = [
    "jq",
    "curl",
    "wget",
    "apt-transport-https",
    "ca-certificates",
    "gnupg",
]
AMAZON_LINUX_PREREQ_PACKAGES: list[str] = [
    "jq",
    "curl",
    "wget",
    "iptables",
]

# --- Static file contents ---
KERNEL_MODULES: list[str] = ["overlay", "br_netfilter"]

MODULES_LOAD_CONTENT: str = "overlay\nbr_netfilter\n"

SYSCTL_CONTENT: str = """\
net.bridge.bridge-nf-call-iptables  = 1
net.ipv4.ip_forward                 = 1
net.bridge.bridge-nf-call-ip6tables = 1
"""

CONTAINERD_CONFIG_CONTENT: str = """\
version = 2
[plugins]
  [plugins."io.containerd.grpc.v1.cri"]
    [plugins."io.containerd.grpc.v1.cri".containerd]
      default_runtime_name = "runc"
      discard_unpacked_layers = true
      [plugins."io.containerd.grpc.v1.cri".containerd.runtimes]
        [plugins."io.containerd.grpc.v1.cri".containerd.runtimes.runc]
          runtime_type = "io.containerd.runc.v2"
          [plugins."io.containerd.grpc.v1.cri".containerd.runtimes.runc.options]
            SystemdCgroup = true
"""

CRICTL_CONFIG_CONTENT: str = f"""\
runtime-endpoint: {CONTAINERD_SOCKET}
image-endpoint: {CONTAINERD_SOCKET}
timeout: 10
debug: false
"""

APT_SOURCE_TEMPLATE: str = (
    "deb [signed-by={keyring}] {base_url}/{channel}/deb/ /\n"
)

YUM_REPO_TEMPLATE: str = """\
[kubernetes]
name=Kubernetes
baseurl={base_url}/{channel}/rpm/
enabled=1
gpgcheck=1
gpgkey={base_url}/{channel}/rpm/repodata/repomd.xml.key
exclude={excludes}
"""

SELINUX_GUIDANCE: list[str] = [
    "Amazon Linux 2023 uses SELinux, not AppArmor, by default.",
    "Ensure SELinux is configured appropriately for containers.",
    "To set SELinux to permissive mode for testing (effective until reboot): 'sudo setenforce 0'",
    f"To make permissive mode persistent (testing only): set SELINUX=permissive in {SELINUX_CONFIG_PATH} and reboot.",
]

SYMBOLS_DEFAULT: dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
}
