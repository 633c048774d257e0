"""Base class shared by the resource-kind cleaners."""

from __future__ import annotations
import datetime
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, TypeVar

from aws_lambda_powertools import Logger

from .errors import (
    CleanupCancelledError,
    ErrorCollection,
    InvalidConfigError,
    ResourceOperationError,
)
from .models import CleanupAction

T = TypeVar("T")


@dataclass
class CleanerReport:
    """What a single cleaner did during one run."""

    actions: list[CleanupAction] = field(default_factory=list)
    errors: ErrorCollection = field(default_factory=ErrorCollection)


class ResourceCleaner(ABC):
    """Lists resources of one kind and deletes the eligible ones.

    Subclasses set ``name`` (used to label log records and errors) and
    ``resource_kind``. Individual resource failures are recorded in the
    returned report and never stop the loop over the remaining resources.
    """

    name: str = ""
    resource_kind: str = ""

    def __init__(self, logger: Logger, cancel_event: threading.Event | None = None):
        if logger is None:
            raise InvalidConfigError(f"{type(self).__name__}.logger must not be empty")
        self.logger = logger
        self._cancel_event = cancel_event

    @abstractmethod
    def clean(self, now: datetime.datetime) -> CleanerReport:
        """Run one cleanup pass for this resource kind."""

    def _checkpoint(self) -> None:
        """Abort the run if cancellation was requested."""
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise CleanupCancelledError(f"{self.name} cancelled")

    def _iterate_listing(
        self, report: CleanerReport, list_resources: Callable[[], Iterable[T]], what: str
    ) -> Iterator[T]:
        """Call ``list_resources`` and yield what it lists page by page.

        A failing listing call is recorded as an error and ends the
        iteration, since nothing else of this kind can be processed safely.
        """
        self._checkpoint()
        try:
            iterator = iter(list_resources())
        except Exception as e:
            self._record_listing_failure(report, e, what)
            return

        while True:
            self._checkpoint()
            try:
                item = next(iterator)
            except StopIteration:
                return
            except CleanupCancelledError:
                raise
            except Exception as e:
                self._record_listing_failure(report, e, what)
                return
            yield item

    def _record_listing_failure(
        self, report: CleanerReport, error: Exception, what: str
    ) -> None:
        self._record_failure(
            report,
            ResourceOperationError(
                self.resource_kind, "*", "list", error, message=f"list {what}: {error}"
            ),
            f"failed listing {what}",
        )

    def _record_deletion(
        self, report: CleanerReport, name: str, reason: str, location: str = ""
    ) -> None:
        report.actions.append(
            CleanupAction(
                resource_kind=self.resource_kind,
                name=name,
                action="DELETE",
                reason=reason,
                location=location,
            )
        )
        self.logger.info(
            f"deleted {self.resource_kind} {name!r}",
            extra={
                "resource_kind": self.resource_kind,
                "resource_name": name,
                "reason": reason,
                "location": location,
            },
        )

    def _record_failure(
        self, report: CleanerReport, error: Exception, message: str, **fields: Any
    ) -> None:
        report.errors.append(error)
        self.logger.error(
            message,
            extra={"resource_kind": self.resource_kind, "error": str(error), **fields},
        )
