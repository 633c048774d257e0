"""Shared logic for resources that are cleaned up once their CI resource group is gone."""

from __future__ import annotations
import datetime
import threading
from functools import partial
from abc import abstractmethod
from typing import Any, Iterable, Sequence

from aws_lambda_powertools import Logger

from ..base import CleanerReport, ResourceCleaner
from ..errors import (
    CleanupCancelledError,
    InvalidConfigError,
    ResourceOperationError,
    is_not_found,
)
from ..policies import is_ci_resource, is_orphaned
from .clients import ResourceGroupClient


class OrphanedResourceCleaner(ResourceCleaner):
    """Deletes CI named resources without a resource group of the same name.

    Eligibility is based on orphanhood only, the age of the resource is not
    considered.
    """

    def __init__(
        self,
        group_client: ResourceGroupClient,
        installations: Sequence[str],
        logger: Logger,
        cancel_event: threading.Event | None = None,
    ):
        if group_client is None:
            raise InvalidConfigError(f"{type(self).__name__}.group_client must not be empty")
        if not installations or any(not i for i in installations):
            raise InvalidConfigError(
                f"{type(self).__name__}.installations must contain non empty items"
            )
        super().__init__(logger, cancel_event)
        self.group_client = group_client
        self.installations = list(installations)

    @abstractmethod
    def list_resources(self, installation: str) -> Iterable[Any]:
        ...

    @abstractmethod
    def group_name_of(self, resource: Any) -> str:
        """Name of the resource group the resource belongs to."""

    @abstractmethod
    def delete_resource(self, installation: str, resource: Any) -> None:
        ...

    def clean(self, now: datetime.datetime) -> CleanerReport:
        report = CleanerReport()

        ci_groups = self.ci_group_names(report)
        if ci_groups is None:
            return report

        for installation in self.installations:
            listing = self._iterate_listing(
                report,
                partial(self.list_resources, installation),
                f"{self.resource_kind}s of {installation}",
            )
            for resource in listing:
                if not is_orphaned(self.group_name_of(resource), ci_groups):
                    continue
                self._delete(installation, resource, report)

        return report

    def ci_group_names(self, report: CleanerReport) -> set[str] | None:
        """Names of the existing CI resource groups, None if listing failed."""
        names: set[str] = set()
        failed = len(report.errors)
        for group in self._iterate_listing(
            report, self.group_client.list_groups, "resource groups"
        ):
            if is_ci_resource(group.name):
                names.add(group.name)
        if len(report.errors) > failed:
            return None
        return names

    def _delete(self, installation: str, resource: Any, report: CleanerReport) -> None:
        self.logger.info(
            f"ensuring deletion of {self.resource_kind} {resource.name!r}",
            extra={"resource_name": resource.name, "installation": installation},
        )
        self._checkpoint()
        try:
            self.delete_resource(installation, resource)
        except CleanupCancelledError:
            raise
        except Exception as e:
            if is_not_found(e):
                self.logger.debug(f"{self.resource_kind} {resource.name!r} already gone")
                return
            self._record_failure(
                report,
                ResourceOperationError(self.resource_kind, resource.name, "delete", e),
                f"did not ensure deletion of {self.resource_kind} {resource.name!r}",
                resource_name=resource.name,
                installation=installation,
            )
            return

        self._record_deletion(
            report,
            resource.name,
            "CI resource group no longer exists",
            location=installation,
        )
