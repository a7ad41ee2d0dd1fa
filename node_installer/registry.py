# node_installer/registry.py
# -*- coding: utf-8 -*-
"""
Registry for the per-distribution installers.

Installer classes register themselves under an OsFamily with the
`InstallerRegistry.register` decorator. `create_installer` imports every
module of the `node_installer.installers` package so the registry is filled
before a lookup.
"""

import importlib
import logging
import pkgutil
from typing import Any, Dict, Optional, Type

from node_config.config_models import AppSettings
from node_installer.base_installer import BaseInstaller
from node_installer.host_profile import HostProfile, OsFamily, detect_os_family

module_logger = logging.getLogger(__name__)


class InstallerRegistry:
    """Maps each supported OsFamily to its installer class."""

    _registry: Dict[OsFamily, Type[BaseInstaller]] = {}

    @classmethod
    def register(cls, family: OsFamily, metadata: Optional[Dict[str, Any]] = None):
        """
        Decorator for registering installer classes.

        Args:
            family: The OS family the installer handles.
            metadata: Optional metadata such as a description.

        Raises:
            ValueError: If another class is already registered for `family`.
        """

        def decorator(
            installer_class: Type[BaseInstaller],
        ) -> Type[BaseInstaller]:
            existing = cls._registry.get(family)
            if existing is not None and existing is not installer_class:
                raise ValueError(
                    f"Installer for '{family.value}' already registered ({existing.__name__})"
                )
            if metadata:
                installer_class.metadata = metadata
            installer_class.os_family = family
            cls._registry[family] = installer_class
            return installer_class

        return decorator

    @classmethod
    def get_installer(cls, family: OsFamily) -> Type[BaseInstaller]:
        """
        Raises:
            KeyError: If no installer is registered for `family`.
        """
        if family not in cls._registry:
            raise KeyError(f"No installer registered for '{family.value}'")
        return cls._registry[family]

    @classmethod
    def get_all_installers(cls) -> Dict[OsFamily, Type[BaseInstaller]]:
        return cls._registry.copy()


def load_installers(current_logger: Optional[logging.Logger] = None) -> None:
    """Import every installer module so each one registers itself."""
    logger_to_use = current_logger if current_logger else module_logger
    package = importlib.import_module("node_installer.installers")
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
        importlib.import_module(f"{package.__name__}.{module_name}")
        logger_to_use.debug(f"Imported installer module: {module_name}")


def create_installer(
    host: HostProfile,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> BaseInstaller:
    """
    Instantiate the installer for `host`.

    Raises:
        UnsupportedOSError: When the host's OS has no installer branch.
    """
    family = detect_os_family(host)
    load_installers(current_logger)
    installer_class = InstallerRegistry.get_installer(family)
    return installer_class(host, app_settings, current_logger)
