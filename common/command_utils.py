# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing shell commands and logging their output.
"""

import logging
import os
import shutil
import subprocess
from typing import Dict, List, Optional

from node_config.config import SYMBOLS_DEFAULT
from node_config.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def get_symbols(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    """Return the configured log symbols, falling back to the defaults."""
    if app_settings and app_settings.symbols:
        return app_settings.symbols
    return SYMBOLS_DEFAULT


def log_message(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Logs a message at the given level name.

    Args:
        message (str): The log message to be recorded.
        level (str): "debug", "info", "warning", "error" or "critical".
            "success" and any unknown level are logged at info.
        current_logger (Optional[logging.Logger]): Logger to use. Defaults to
            the module logger.
        app_settings (Optional[AppSettings]): Settings that may influence
            logging behaviour.
        exc_info (bool): Whether to include exception details.
    """
    effective_logger = current_logger if current_logger else module_logger

    if level == "warning":
        effective_logger.warning(message, exc_info=exc_info)
    elif level == "error":
        effective_logger.error(message, exc_info=exc_info)
    elif level == "critical":
        effective_logger.critical(message, exc_info=exc_info)
    elif level == "debug":
        effective_logger.debug(message, exc_info=exc_info)
    else:
        effective_logger.info(message, exc_info=exc_info)


def is_running_as_root() -> bool:
    return os.geteuid() == 0


def _get_elevated_command_prefix() -> List[str]:
    """
    Returns ["sudo"] when the process lacks root privileges, otherwise an
    empty list.
    """
    return [] if is_running_as_root() else ["sudo"]


def _log_streams(
    stdout: Optional[str],
    stderr: Optional[str],
    level: str,
    current_logger: logging.Logger,
    app_settings: Optional[AppSettings],
) -> None:
    for stream_name, content in (("stdout", stdout), ("stderr", stderr)):
        if isinstance(content, str) and content.strip():
            log_message(
                f"   {stream_name}: {content.strip()}",
                level,
                current_logger,
                app_settings,
            )


def run_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> subprocess.CompletedProcess:
    """
    Executes a command, logging the command line, captured output and any
    failure.

    Args:
        command (List[str]): The command and its arguments. No shell is used.
        app_settings (Optional[AppSettings]): Settings providing log symbols.
        check (bool): Raise CalledProcessError on a non-zero exit code.
        capture_output (bool): Capture stdout and stderr. Captured output is
            logged at debug level.
        cmd_input (Optional[str]): Text passed to the command's stdin.
        current_logger (Optional[logging.Logger]): Logger for command details.

    Returns:
        subprocess.CompletedProcess: The completed process.

    Raises:
        subprocess.CalledProcessError: If check is True and the command fails.
        FileNotFoundError: If the executable is not found.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    command_line = subprocess.list2cmdline(command)

    log_message(
        f"{symbols.get('gear', '⚙️')} Executing: {command_line}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command,
            check=check,
            capture_output=capture_output,
            text=True,
            input=cmd_input,
        )
    except subprocess.CalledProcessError as e:
        log_message(
            f"{symbols.get('error', '❌')} Command `{command_line}` failed (rc {e.returncode}).",
            "error",
            effective_logger,
            app_settings,
        )
        _log_streams(e.stdout, e.stderr, "error", effective_logger, app_settings)
        raise
    except FileNotFoundError as e:
        log_message(
            f"{symbols.get('error', '❌')} Command not found: {e.filename or command[0]}. Ensure it's installed and in PATH.",
            "error",
            effective_logger,
            app_settings,
        )
        raise

    if capture_output:
        _log_streams(
            result.stdout, result.stderr, "debug", effective_logger, app_settings
        )
    return result


def run_elevated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> subprocess.CompletedProcess:
    """
    Executes a command with elevated privileges, prefixing it with sudo when
    the current process is not root. Arguments match run_command.
    """
    return run_command(
        _get_elevated_command_prefix() + list(command),
        app_settings,
        check=check,
        capture_output=capture_output,
        cmd_input=cmd_input,
        current_logger=current_logger,
    )


def run_tolerated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    reason: str,
    elevated: bool = True,
    capture_output: bool = True,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Runs a command whose failure is expected and harmless, such as removing a
    package that was never installed.

    The failure is logged with `reason` and swallowed. Output is captured
    (and logged at debug) unless capture_output is False.

    Returns:
        True if the command succeeded, False if it failed or was not found.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    runner = run_elevated_command if elevated else run_command
    try:
        runner(
            command,
            app_settings,
            check=True,
            capture_output=capture_output,
            current_logger=logger_to_use,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        log_message(
            f"{symbols.get('info', 'ℹ️')} Ignoring failure of `{subprocess.list2cmdline(command)}`: {reason} ({e})",
            "info",
            logger_to_use,
            app_settings,
        )
        return False


def command_exists(command_name: str) -> bool:
    """
    Check if a command exists in the system's PATH.

    Parameters:
        command_name (str): The name of the command to check for existence.

    Returns:
        bool: True if the command is found in the system's PATH, False otherwise.
    """
    return shutil.which(command_name) is not None
