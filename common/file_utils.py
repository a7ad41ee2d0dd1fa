# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utilities for writing root-owned configuration files.

Content is staged in a temporary file owned by the current user and then
copied into place with elevated privileges, so the same code path works for
root and for sudo-capable users.
"""

import datetime
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from node_config.config_models import AppSettings

from .command_utils import get_symbols, log_message, run_elevated_command

module_logger = logging.getLogger(__name__)


def write_config_file(
    file_path: Union[str, Path],
    content: str,
    app_settings: Optional[AppSettings],
    mode: str = "644",
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Write `content` to `file_path`, replacing any existing file.

    The parent directory is created when missing. Writing identical content
    twice leaves the same file behind.

    Raises:
        subprocess.CalledProcessError: If an elevated copy/chmod fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    target = Path(file_path)

    run_elevated_command(
        ["mkdir", "-p", str(target.parent)],
        app_settings,
        current_logger=logger_to_use,
    )

    temp_file_path = ""
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            delete=False,
            prefix="kns_",
            suffix=".tmp",
            encoding="utf-8",
        ) as temp_f:
            temp_f.write(content)
            temp_file_path = temp_f.name
        run_elevated_command(
            ["cp", temp_file_path, str(target)],
            app_settings,
            current_logger=logger_to_use,
        )
        run_elevated_command(
            ["chmod", mode, str(target)],
            app_settings,
            current_logger=logger_to_use,
        )
    finally:
        if temp_file_path and os.path.exists(temp_file_path):
            os.unlink(temp_file_path)

    log_message(
        f"{symbols.get('success', '✅')} Wrote {target}",
        "success",
        logger_to_use,
        app_settings,
    )


def install_file(
    source_path: Union[str, Path],
    target_path: Union[str, Path],
    app_settings: Optional[AppSettings],
    mode: str = "644",
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Install a downloaded file into a system path with the given mode."""
    run_elevated_command(
        ["install", "-D", "-m", mode, str(source_path), str(target_path)],
        app_settings,
        current_logger=current_logger,
    )


def backup_file(
    file_path: Union[str, Path],
    app_settings: Optional[AppSettings],
    backup_path: Optional[Union[str, Path]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Copy `file_path` next to itself before it is edited.

    Args:
        backup_path: Destination of the copy. Defaults to a timestamped
            `<file>.bak.<YYYYmmdd-HHMMSS>` path.

    Returns:
        The backup path, or None when the source does not exist.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    if not Path(file_path).is_file():
        log_message(
            f"{symbols.get('info', 'ℹ️')} File {file_path} does not exist or is not a regular file. No backup needed.",
            "info",
            logger_to_use,
            app_settings,
        )
        return None

    if backup_path is None:
        timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        backup_path = f"{file_path}.bak.{timestamp}"

    run_elevated_command(
        ["cp", "-a", str(file_path), str(backup_path)],
        app_settings,
        current_logger=logger_to_use,
    )
    log_message(
        f"{symbols.get('success', '✅')} Backed up {file_path} to {backup_path}",
        "success",
        logger_to_use,
        app_settings,
    )
    return str(backup_path)


def remove_paths(
    paths: List[Union[str, Path]],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Recursively delete each path in `paths`; missing paths are ignored."""
    logger_to_use = current_logger if current_logger else module_logger
    existing = [str(p) for p in paths if Path(p).exists()]
    if not existing:
        log_message(
            "No leftover paths to remove.", "debug", logger_to_use, app_settings
        )
        return
    run_elevated_command(
        ["rm", "-rf", *existing], app_settings, current_logger=logger_to_use
    )


def touch_file(
    file_path: Union[str, Path],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Create `file_path` if missing and update its modification time."""
    try:
        run_elevated_command(
            ["touch", str(file_path)],
            app_settings,
            current_logger=current_logger,
        )
    except subprocess.CalledProcessError:
        log_message(
            f"Could not touch {file_path}",
            "error",
            current_logger,
            app_settings,
        )
        raise
