# node_installer/errors.py
# -*- coding: utf-8 -*-
"""
Exception hierarchy for the node setup workflows.

Every error carries the process exit code the CLI returns when it reaches the
top level uncaught.
"""

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_UNSUPPORTED_OS = 2
EXIT_MISSING_PREREQUISITE = 4
EXIT_INTERRUPTED = 130


class BootstrapError(Exception):
    """Base class for fatal node setup errors."""

    exit_code: int = EXIT_FAILURE


class OSDetectionError(BootstrapError):
    """OS identity could not be read from the host."""


class UnsupportedArchitectureError(BootstrapError):
    """The machine architecture has no containerd/runc release build."""


class UnsupportedOSError(BootstrapError):
    """The distribution or its version is not supported."""

    exit_code = EXIT_UNSUPPORTED_OS


class VersionFormatError(BootstrapError):
    """A user-supplied version string is malformed."""


class ReleaseLookupError(BootstrapError):
    """A release tag could not be resolved from its endpoint."""


class DownloadError(BootstrapError):
    """A release asset, unit file or signing key could not be fetched."""


class PrivilegeError(BootstrapError):
    """The process can neither run as root nor escalate with sudo."""


class MissingPrerequisiteError(BootstrapError):
    """A prerequisite workflow has not completed on this host."""

    exit_code = EXIT_MISSING_PREREQUISITE


class StepFailedError(BootstrapError):
    """A required installation step failed."""

    def __init__(self, step_name: str, cause: BaseException):
        super().__init__(f"Step '{step_name}' failed: {cause}")
        self.step_name = step_name
        self.cause = cause
