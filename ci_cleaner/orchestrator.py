"""Runs every cleaner of a provider and aggregates their failures.

All cleaners are attempted on every run: a cleaner that fails (or that
raises unexpectedly) has its errors recorded and the next cleaner runs
anyway. Only cancellation aborts a run early.
"""

from __future__ import annotations
import datetime
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from aws_lambda_powertools import Logger

from .base import ResourceCleaner
from .errors import (
    CleanupCancelledError,
    ErrorCollection,
    InvalidConfigError,
)
from .models import CleanupAction
from .utils.naming import utc_now


@dataclass
class CleanupResult:
    """Outcome of one orchestrator run."""

    provider: str
    actions: list[CleanupAction] = field(default_factory=list)
    errors: ErrorCollection = field(default_factory=ErrorCollection)
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors.has_errors()

    def summary(self) -> dict[str, int]:
        """Count deleted resources per kind."""
        counts: dict[str, int] = {}
        for action in self.actions:
            counts[action.resource_kind] = counts.get(action.resource_kind, 0) + 1
        return counts

    def raise_for_errors(self) -> None:
        if not self.ok:
            raise self.errors.to_exception(f"{self.provider} cleanup failed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "ok": self.ok,
            "total_actions": len(self.actions),
            "by_kind": self.summary(),
            "actions": [action.to_dict() for action in self.actions],
            "errors": [str(error) for error in self.errors.flatten()],
            "duration_seconds": round(self.duration_seconds, 2),
        }


class Orchestrator:
    """Runs a fixed, ordered list of cleaners for one provider account."""

    def __init__(
        self,
        provider: str,
        cleaners: Sequence[ResourceCleaner],
        logger: Logger,
        clock: Callable[[], datetime.datetime] = utc_now,
        cancel_event: threading.Event | None = None,
    ):
        if not provider:
            raise InvalidConfigError("Orchestrator.provider must not be empty")
        if not cleaners:
            raise InvalidConfigError("Orchestrator.cleaners must not be empty")
        if logger is None:
            raise InvalidConfigError("Orchestrator.logger must not be empty")
        names = [c.name for c in cleaners]
        if any(not n for n in names) or len(set(names)) != len(names):
            raise InvalidConfigError(
                f"Orchestrator.cleaners must have unique non empty names, got {names}"
            )

        self.provider = provider
        self.cleaners = list(cleaners)
        self.logger = logger
        self._clock = clock
        self._cancel_event = cancel_event

    def clean(self) -> CleanupResult:
        start_time = time.time()
        now = self._clock()
        result = CleanupResult(provider=self.provider)

        self.logger.append_keys(provider=self.provider)
        try:
            self.logger.info(f"starting {self.provider} CI cleanup")
            for cleaner in self.cleaners:
                if self._cancel_event is not None and self._cancel_event.is_set():
                    raise CleanupCancelledError(f"{self.provider} cleanup cancelled")
                self._run_cleaner(cleaner, now, result)

            result.duration_seconds = time.time() - start_time
            self.logger.info(
                f"finished {self.provider} CI cleanup",
                extra={
                    "total_actions": len(result.actions),
                    "by_kind": result.summary(),
                    "error_count": len(result.errors),
                    "duration_seconds": round(result.duration_seconds, 1),
                },
            )
        finally:
            self.logger.remove_keys(["provider"])

        return result

    def _run_cleaner(
        self, cleaner: ResourceCleaner, now: datetime.datetime, result: CleanupResult
    ) -> None:
        self.logger.append_keys(cleaner=cleaner.name)
        try:
            self.logger.info(f"running cleaner {cleaner.name}")
            try:
                report = cleaner.clean(now)
            except CleanupCancelledError:
                raise
            except Exception as e:
                self.logger.exception(
                    f"cleaner {cleaner.name} failed", extra={"error": str(e)}
                )
                result.errors.append(e)
                return

            result.actions.extend(report.actions)
            if report.errors.has_errors():
                self.logger.error(
                    f"cleaner {cleaner.name} finished with errors",
                    extra={"error_count": len(report.errors)},
                )
                result.errors.append(report.errors)
            else:
                self.logger.info(
                    f"cleaner {cleaner.name} finished",
                    extra={"deleted": len(report.actions)},
                )
        finally:
            self.logger.remove_keys(["cleaner"])
