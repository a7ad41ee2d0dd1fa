# node_installer/outcome.py
# -*- coding: utf-8 -*-
"""Per-step results collected during a workflow for the final report."""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from common.command_utils import log_message
from node_config.config_models import AppSettings


class OutcomeStatus(str, Enum):
    INSTALLED = "installed"
    ALREADY_PRESENT = "already-present"
    SKIPPED = "skipped"
    TOLERATED_FAILURE = "tolerated-failure"
    FAILED = "failed"


# log_message level (and symbol key) used when reporting each status
STATUS_LOG_LEVELS = {
    OutcomeStatus.INSTALLED: "success",
    OutcomeStatus.ALREADY_PRESENT: "info",
    OutcomeStatus.SKIPPED: "info",
    OutcomeStatus.TOLERATED_FAILURE: "warning",
    OutcomeStatus.FAILED: "error",
}


class InstallationOutcome(BaseModel):
    name: str
    status: OutcomeStatus
    detail: str = ""


class OutcomeReport:
    """Ordered list of step outcomes, used only for terminal reporting."""

    def __init__(self) -> None:
        self.outcomes: List[InstallationOutcome] = []

    def record(
        self, name: str, status: OutcomeStatus, detail: str = ""
    ) -> InstallationOutcome:
        outcome = InstallationOutcome(name=name, status=status, detail=detail)
        self.outcomes.append(outcome)
        return outcome

    def by_status(self, status: OutcomeStatus) -> List[InstallationOutcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def has_failures(self) -> bool:
        return bool(self.by_status(OutcomeStatus.FAILED))

    def log_summary(
        self,
        app_settings: AppSettings,
        current_logger: Optional[logging.Logger] = None,
    ) -> None:
        if not self.outcomes:
            return
        log_message("Step summary:", "info", current_logger, app_settings)
        for outcome in self.outcomes:
            line = f"  [{outcome.status.value}] {outcome.name}"
            if outcome.detail:
                line += f": {outcome.detail}"
            log_message(
                line,
                STATUS_LOG_LEVELS[outcome.status],
                current_logger,
                app_settings,
            )
