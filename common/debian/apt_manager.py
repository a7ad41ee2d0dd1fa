# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
"""
Package management for Ubuntu hosts through the apt-get, apt-cache, apt-mark
and dpkg-query command-line tools.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from common.command_utils import (
    command_exists,
    run_command,
    run_elevated_command,
)
from common.file_utils import write_config_file
from node_config.config_models import AppSettings

APT_GET_QUIET = ["-y", "-qq"]


class AptManager:
    """
    Wraps apt for the node installer: package installs and purges, holds,
    version listings and signed third-party repositories.

    Mutating methods return True on success and False on failure, leaving the
    decision whether a failure is fatal to the caller.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical("apt-get is not available on this host.")
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def _elevated(
        self,
        command: List[str],
        app_settings: AppSettings,
        failure: str,
        capture_output: bool = False,
        failure_level: str = "error",
    ) -> bool:
        try:
            run_elevated_command(
                command,
                app_settings,
                capture_output=capture_output,
                current_logger=self.logger,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            getattr(self.logger, failure_level)(f"{failure}: {e}")
            return False
        return True

    def update(
        self, app_settings: AppSettings, raise_error: bool = False
    ) -> bool:
        """
        Refreshes the package index with 'apt-get update'.

        With raise_error the underlying exception is re-raised instead of
        being reported through the return value.
        """
        self.logger.info("Refreshing apt package index...")
        if raise_error:
            run_elevated_command(
                ["apt-get", "update", "-qq"],
                app_settings,
                capture_output=False,
                current_logger=self.logger,
            )
            return True
        return self._elevated(
            ["apt-get", "update", "-qq"],
            app_settings,
            "apt-get update failed",
        )

    def is_installed(self, package_name: str, app_settings: AppSettings) -> bool:
        try:
            status = run_command(
                ["dpkg-query", "-W", "-f=${db:Status-Status}", package_name],
                app_settings,
                check=True,
                capture_output=True,
                current_logger=self.logger,
            ).stdout
        except subprocess.CalledProcessError:
            return False
        return status.strip() == "installed"

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = True,
        upgrade_installed: bool = False,
    ) -> bool:
        """
        Installs packages with 'apt-get install'.

        Bare names already present on the host are skipped unless
        upgrade_installed is set, in which case apt moves them (held or not)
        to the current candidate. Pinned specs (`name=version`) always go to
        apt so the requested version wins.
        """
        specs = packages if isinstance(packages, list) else [packages]
        if update_first and not self.update(app_settings):
            return False

        pending = []
        for spec in specs:
            if (
                not upgrade_installed
                and "=" not in spec
                and self.is_installed(spec, app_settings)
            ):
                self.logger.info(f"Package '{spec}' is already installed. Skipping.")
                continue
            self.logger.info(f"Marking package for installation: {spec}")
            pending.append(spec)

        if not pending:
            self.logger.info("Nothing to install.")
            return True

        self.logger.info(f"Committing installation for: {', '.join(pending)}")
        command = ["apt-get", "install", *APT_GET_QUIET]
        if upgrade_installed:
            command.append("--allow-change-held-packages")
        return self._elevated(
            [*command, *pending],
            app_settings,
            "Package installation failed",
        )

    def purge(
        self, packages: Union[List[str], str], app_settings: AppSettings
    ) -> bool:
        """
        Purges packages, including held ones. A failure usually means none of
        them were installed, so it is only logged at info level.
        """
        names = packages if isinstance(packages, list) else [packages]
        self.logger.info(f"Purging packages: {', '.join(names)}")
        return self._elevated(
            [
                "apt-get",
                "purge",
                *APT_GET_QUIET,
                "--allow-change-held-packages",
                *names,
            ],
            app_settings,
            f"Purge of {', '.join(names)} failed (packages may not be installed)",
            capture_output=True,
            failure_level="info",
        )

    def autoremove(self, app_settings: AppSettings) -> bool:
        self.logger.info("Removing packages that are no longer required...")
        return self._elevated(
            ["apt-get", "autoremove", *APT_GET_QUIET],
            app_settings,
            "apt-get autoremove failed",
            capture_output=True,
        )

    def hold(self, packages: List[str], app_settings: AppSettings) -> bool:
        """Pin packages at their installed version with 'apt-mark hold'."""
        if not self._elevated(
            ["apt-mark", "hold", *packages],
            app_settings,
            "Failed to hold packages",
        ):
            return False
        self.logger.info(f"Held packages: {', '.join(packages)}")
        return True

    def madison(
        self, package_name: str, app_settings: AppSettings
    ) -> Optional[str]:
        """
        Returns the 'apt-cache madison' listing of the versions of
        `package_name` the configured repositories offer, or None when
        apt-cache fails.
        """
        try:
            return run_command(
                ["apt-cache", "madison", package_name],
                app_settings,
                check=True,
                capture_output=True,
                current_logger=self.logger,
            ).stdout
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.warning(
                f"Could not list available {package_name} versions: {e}"
            )
            return None

    def add_dearmored_key(
        self,
        armored_key: str,
        keyring_path: Path,
        app_settings: AppSettings,
    ) -> bool:
        """
        Stores an ASCII-armored signing key as a binary keyring at
        `keyring_path` using 'gpg --dearmor', replacing any existing keyring.
        """
        self.logger.info(f"Writing signing key to {keyring_path}")
        steps = [
            (["install", "-m", "0755", "-d", str(keyring_path.parent)], None),
            (
                ["gpg", "--batch", "--yes", "--dearmor", "-o", str(keyring_path)],
                armored_key,
            ),
            (["chmod", "644", str(keyring_path)], None),
        ]
        try:
            for command, stdin_text in steps:
                run_elevated_command(
                    command,
                    app_settings,
                    cmd_input=stdin_text,
                    current_logger=self.logger,
                )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to store signing key {keyring_path}: {e}")
            return False
        return True

    def add_source_list(
        self,
        list_path: Path,
        source_line: str,
        app_settings: AppSettings,
    ) -> bool:
        """Writes a one-line-style source list file for a repository."""
        self.logger.info(f"Adding repository: {source_line.strip()}")
        try:
            write_config_file(
                list_path, source_line, app_settings, current_logger=self.logger
            )
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Could not write {list_path}: {e}")
            return False
        return True
