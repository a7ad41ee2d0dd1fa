# common/orchestrator.py
# -*- coding: utf-8 -*-
"""
Sequential step runner used by the runtime and kube-tools workflows.

Each step's result lands in an OutcomeReport so the CLI can print what was
installed, skipped, tolerated or failed.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from common.command_utils import log_message
from node_installer.errors import BootstrapError, StepFailedError
from node_installer.outcome import STATUS_LOG_LEVELS, OutcomeReport, OutcomeStatus


class Orchestrator:
    """Runs named steps in order and records an outcome for each."""

    def __init__(
        self,
        app_settings: Any,
        orchestrator_logger: Optional[logging.Logger] = None,
        report: Optional[OutcomeReport] = None,
    ):
        """
        Args:
            app_settings: The application settings object.
            orchestrator_logger: Logger for step progress.
            report: Report shared with other orchestrators, e.g. when the
                `all` command runs both workflows. Defaults to a new report.
        """
        self.app_settings = app_settings
        self.logger = orchestrator_logger or logging.getLogger(__name__)
        self.report = report if report is not None else OutcomeReport()
        self.tasks: List[Dict[str, Any]] = []

    def add_task(
        self,
        name: str,
        func: Callable,
        args: Optional[List[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        fatal: bool = True,
    ):
        """
        Queues a step.

        `func` may return an OutcomeStatus (e.g. SKIPPED) to record something
        other than INSTALLED. Returning False counts as a failure. A failing
        non-fatal step is recorded as TOLERATED_FAILURE and the run goes on.
        """
        self.tasks.append(
            {
                "name": name,
                "func": func,
                "args": args or [],
                "kwargs": kwargs or {},
                "fatal": fatal,
            }
        )
        self.logger.debug(f"Queued step '{name}' (fatal={fatal}).")

    def run(self) -> bool:
        """
        Runs the queued steps in order.

        Returns True once every step has run. A fatal failure stops the run:
        BootstrapError subclasses propagate unchanged, anything else
        (including a False return) is wrapped in StepFailedError.
        """
        symbols = getattr(self.app_settings, "symbols", {}) or {}
        total = len(self.tasks)
        for position, task in enumerate(self.tasks, start=1):
            step = task["name"]
            self.logger.info(f"[{position}/{total}] {step}")

            try:
                result = task["func"](*task["args"], **task["kwargs"])
                if result is False:
                    raise RuntimeError("step reported failure")
            except Exception as e:
                self._handle_failure(task, e)
                continue

            status = (
                result
                if isinstance(result, OutcomeStatus)
                else OutcomeStatus.INSTALLED
            )
            self.report.record(step, status)
            level = STATUS_LOG_LEVELS[status]
            log_message(
                f"{symbols.get(level, '')} {step}: {status.value}".lstrip(),
                level,
                self.logger,
                self.app_settings,
            )

        self.logger.info(
            f"{symbols.get('sparkles', '✨')} All {total} steps done."
        )
        return True

    def _handle_failure(self, task: Dict[str, Any], error: Exception) -> None:
        step = task["name"]
        if not task.get("fatal", True):
            self.logger.warning(f"Step '{step}' failed, continuing: {error}")
            self.report.record(step, OutcomeStatus.TOLERATED_FAILURE, str(error))
            return

        self.logger.critical(
            f"Step '{step}' failed: {error}",
            exc_info=not isinstance(error, BootstrapError),
        )
        self.report.record(step, OutcomeStatus.FAILED, str(error))
        if isinstance(error, BootstrapError):
            raise error
        raise StepFailedError(step, error) from error
