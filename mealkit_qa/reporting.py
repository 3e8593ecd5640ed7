"""Scenario step log and out-of-band task log."""
from __future__ import annotations

import logging
from typing import List

logger = logging.getLogger(__name__)


class StepReporter:
    """Write-only reporting sink for one scenario."""

    def __init__(self, scenario: str, enabled: bool = True) -> None:
        self.scenario = scenario
        self.enabled = enabled
        self.steps: List[str] = []

    def step(self, message: str) -> None:
        if not self.enabled:
            return
        self.steps.append(message)
        logger.info(f"[{self.scenario}] step {len(self.steps)}: {message}")

    def task_log(self, message: str) -> None:
        print(f"[TASK] {message}")
