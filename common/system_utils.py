# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the node setup.

This module wraps systemd service control, kernel module loading, sysctl
reloads and swap handling.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from common.command_utils import (
    get_symbols,
    log_message,
    run_command,
    run_elevated_command,
)
from common.file_utils import backup_file, write_config_file
from node_config.config_models import AppSettings

module_logger = logging.getLogger(__name__)

_ACTIVE_SWAP_LINE = re.compile(r"^\s*[^#].*\sswap\s")


def systemd_reload(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Reload the systemd daemon.

    Raises:
        subprocess.CalledProcessError: If `systemctl daemon-reload` fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_message(
        f"{symbols.get('gear', '⚙️')} Reloading systemd daemon...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["systemctl", "daemon-reload"],
        app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"{symbols.get('success', '✅')} Systemd daemon reloaded.",
        "success",
        logger_to_use,
        app_settings,
    )


def enable_service(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Enable a systemd unit and start it now."""
    run_elevated_command(
        ["systemctl", "enable", "--now", service_name],
        app_settings,
        current_logger=current_logger,
    )


def is_service_active(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    try:
        result = run_elevated_command(
            ["systemctl", "is-active", "--quiet", service_name],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0


def load_kernel_modules(
    modules: List[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    for module in modules:
        run_elevated_command(
            ["modprobe", module], app_settings, current_logger=current_logger
        )


def apply_sysctl(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Apply every sysctl.d drop-in without a reboot."""
    run_elevated_command(
        ["sysctl", "--system"],
        app_settings,
        capture_output=True,
        current_logger=current_logger,
    )


def comment_out_swap_entries(fstab_text: str) -> Tuple[str, int]:
    """
    Prefix every active swap entry in an fstab body with '#'.

    Returns:
        The new text and the number of lines that were commented out.
    """
    changed = 0
    new_lines = []
    for line in fstab_text.splitlines(keepends=True):
        if _ACTIVE_SWAP_LINE.match(line):
            new_lines.append("#" + line)
            changed += 1
        else:
            new_lines.append(line)
    return "".join(new_lines), changed


def disable_swap(
    fstab_path: Path,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> int:
    """
    Turn swap off now and keep it off across reboots.

    Active swap lines in fstab are commented out after a copy of the file is
    saved as `<fstab>.bak`.

    Returns:
        The number of fstab lines that were commented out.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    run_elevated_command(
        ["swapoff", "-a"], app_settings, current_logger=logger_to_use
    )

    if not fstab_path.is_file():
        log_message(
            f"{symbols.get('info', 'ℹ️')} {fstab_path} not found; nothing to persist.",
            "info",
            logger_to_use,
            app_settings,
        )
        return 0

    new_text, changed = comment_out_swap_entries(
        fstab_path.read_text(encoding="utf-8")
    )
    if not changed:
        log_message(
            f"{symbols.get('info', 'ℹ️')} No active swap entries in {fstab_path}.",
            "info",
            logger_to_use,
            app_settings,
        )
        return 0

    backup_file(
        fstab_path,
        app_settings,
        backup_path=f"{fstab_path}.bak",
        current_logger=logger_to_use,
    )
    write_config_file(
        fstab_path, new_text, app_settings, current_logger=logger_to_use
    )
    log_message(
        f"{symbols.get('success', '✅')} Commented out {changed} swap line(s) in {fstab_path} (backup: {fstab_path}.bak).",
        "success",
        logger_to_use,
        app_settings,
    )
    return changed


def get_selinux_mode(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> Optional[str]:
    """Return the output of `getenforce`, or None when it cannot be run."""
    try:
        result = run_command(
            ["getenforce"],
            app_settings,
            capture_output=True,
            check=True,
            current_logger=current_logger,
        )
    except (FileNotFoundError, subprocess.CalledProcessError):
        return None
    return result.stdout.strip() or None
