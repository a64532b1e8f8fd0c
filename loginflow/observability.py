"""Step progress events and logging setup."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from .models import LoginOutcome, StepResult

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging the way the service runs it."""
    from .config import settings

    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )


class StepObserver(ABC):
    """Receives structured progress events for one login attempt."""

    @abstractmethod
    def step_started(self, step: str) -> None:
        pass

    @abstractmethod
    def step_finished(self, step: str, result: StepResult) -> None:
        pass

    def attempt_finished(self, outcome: LoginOutcome) -> None:
        pass


class LoggingStepObserver(StepObserver):
    """Writes step events to the log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def step_started(self, step: str) -> None:
        self.log.info(f"[{step}] started")

    def step_finished(self, step: str, result: StepResult) -> None:
        if result.succeeded:
            self.log.info(f"[{step}] done: {result.detail}")
        elif result.attempted:
            self.log.warning(f"[{step}] failed: {result.detail}")
        else:
            self.log.info(f"[{step}] skipped: {result.detail}")

    def attempt_finished(self, outcome: LoginOutcome) -> None:
        if outcome.succeeded:
            self.log.info(f"[result] {outcome.status.value}: {outcome.message}")
        else:
            self.log.error(f"[result] {outcome.status.value}: {outcome.message}")


class RecordingStepObserver(StepObserver):
    """Keeps events in memory, in the order they happened."""

    def __init__(self):
        self.events: List[Tuple[str, str, Optional[StepResult]]] = []
        self.outcome: Optional[LoginOutcome] = None

    def step_started(self, step: str) -> None:
        self.events.append(("start", step, None))

    def step_finished(self, step: str, result: StepResult) -> None:
        self.events.append(("end", step, result))

    def attempt_finished(self, outcome: LoginOutcome) -> None:
        self.outcome = outcome

    @property
    def started_steps(self) -> List[str]:
        return [name for kind, name, _ in self.events if kind == "start"]

    def result_for(self, step: str) -> Optional[StepResult]:
        for kind, name, result in reversed(self.events):
            if kind == "end" and name == step:
                return result
        return None
