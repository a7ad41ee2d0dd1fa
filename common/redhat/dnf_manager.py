# common/redhat/dnf_manager.py
# -*- coding: utf-8 -*-
import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from common.command_utils import command_exists, run_elevated_command
from common.file_utils import write_config_file
from node_config.config_models import AppSettings

VERSIONLOCK_PLUGIN_PACKAGE = "python3-dnf-plugin-versionlock"


class DnfManager:
    """
    A centralized manager for dnf packages on Amazon Linux 2023 and other
    RPM-based distributions, including .repo definitions and versionlock.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("dnf"):
            self.logger.critical(
                "'dnf' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'dnf' not found. Is this an RPM-based system?"
            )

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        allow_erasing: bool = False,
        disable_excludes: Optional[str] = None,
    ) -> bool:
        """
        Installs one or more packages with 'dnf install -y'.

        Args:
            packages: A single package spec or a list of them.
            app_settings: The application settings.
            allow_erasing: Let dnf replace conflicting packages (for example
                curl-minimal on Amazon Linux 2023).
            disable_excludes: Repository whose `exclude=` list is ignored for
                this transaction.

        Returns:
            True if successful, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]

        cmd = ["dnf", "install", "-y"]
        if allow_erasing:
            cmd.append("--allowerasing")
        if disable_excludes:
            cmd.append(f"--disableexcludes={disable_excludes}")
        cmd.extend(packages)

        self.logger.info(f"Committing installation for: {', '.join(packages)}")
        try:
            run_elevated_command(cmd, app_settings, current_logger=self.logger)
            return True
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to install packages: {e}")
            return False

    def remove(
        self, packages: Union[List[str], str], app_settings: AppSettings
    ) -> bool:
        """
        Removes packages with 'dnf remove -y'. Failure (for example when none
        are installed) is logged at info level.
        """
        if not isinstance(packages, list):
            packages = [packages]

        self.logger.info(f"Removing packages: {', '.join(packages)}")
        try:
            run_elevated_command(
                ["dnf", "remove", "-y", *packages],
                app_settings,
                capture_output=True,
                current_logger=self.logger,
            )
            return True
        except subprocess.CalledProcessError as e:
            self.logger.info(
                f"Removal of {', '.join(packages)} failed (packages may not be installed): {e}"
            )
            return False

    def autoremove(self, app_settings: AppSettings) -> bool:
        try:
            run_elevated_command(
                ["dnf", "autoremove", "-y"],
                app_settings,
                capture_output=True,
                current_logger=self.logger,
            )
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to autoremove packages: {e}")
            return False

    def versionlock(
        self, packages: List[str], app_settings: AppSettings
    ) -> bool:
        """
        Locks packages at their installed version. The versionlock plugin is
        installed on demand.

        Returns:
            True if the lock was added, False otherwise.
        """
        if not self.install(VERSIONLOCK_PLUGIN_PACKAGE, app_settings):
            self.logger.warning(
                "dnf versionlock plugin unavailable; packages are not locked."
            )
            return False
        try:
            run_elevated_command(
                ["dnf", "versionlock", "add", *packages],
                app_settings,
                current_logger=self.logger,
            )
            self.logger.info(f"Version-locked packages: {', '.join(packages)}")
            return True
        except subprocess.CalledProcessError as e:
            self.logger.warning(f"Failed to versionlock packages: {e}")
            return False

    def versionlock_delete(
        self, packages: List[str], app_settings: AppSettings
    ) -> bool:
        """
        Drops version locks left by an earlier install. Fails harmlessly when
        nothing is locked or the plugin is missing, so failure is logged at
        info level.
        """
        try:
            run_elevated_command(
                ["dnf", "versionlock", "delete", *packages],
                app_settings,
                capture_output=True,
                current_logger=self.logger,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.info(
                f"No version locks removed for {', '.join(packages)}: {e}"
            )
            return False
        self.logger.info(f"Removed version locks: {', '.join(packages)}")
        return True

    def add_repository(
        self, repo_path: Path, repo_content: str, app_settings: AppSettings
    ) -> bool:
        """Writes a .repo definition, replacing any existing one."""
        self.logger.info(f"Adding repository definition {repo_path}")
        try:
            write_config_file(
                repo_path, repo_content, app_settings, current_logger=self.logger
            )
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(
                f"Failed to create repository file '{repo_path}': {e}"
            )
            return False
