"""Resource group cleanup."""

from __future__ import annotations
import datetime
import threading

from aws_lambda_powertools import Logger

from ..base import CleanerReport, ResourceCleaner
from ..errors import (
    CleanupCancelledError,
    InvalidConfigError,
    ResourceOperationError,
    is_not_found,
)
from ..models import ResourceGroup
from ..models.config import GRACE_PERIOD
from ..policies import group_should_be_deleted, is_ci_resource
from .clients import ActivityLogClient, ResourceGroupClient


def activity_filter(group_name: str, since: datetime.datetime) -> str:
    """Activity log filter for events of one group at or after ``since``."""
    timestamp = since.astimezone(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return f"eventTimestamp ge '{timestamp}' and resourceGroupName eq '{group_name}'"


class ResourceGroupCleaner(ResourceCleaner):
    """Deletes CI resource groups that saw no activity during the grace period.

    Groups can be reused by later CI runs, so on top of the age and name
    rules a group must have no activity log entry since ``now - GRACE_PERIOD``.
    Any entry counts, whatever the operation was.
    """

    name = "resource_groups"
    resource_kind = "resource_group"

    def __init__(
        self,
        group_client: ResourceGroupClient,
        activity_client: ActivityLogClient,
        logger: Logger,
        cancel_event: threading.Event | None = None,
    ):
        if group_client is None:
            raise InvalidConfigError("ResourceGroupCleaner.group_client must not be empty")
        if activity_client is None:
            raise InvalidConfigError(
                "ResourceGroupCleaner.activity_client must not be empty"
            )
        super().__init__(logger, cancel_event)
        self.group_client = group_client
        self.activity_client = activity_client

    def clean(self, now: datetime.datetime) -> CleanerReport:
        report = CleanerReport()
        since = now - GRACE_PERIOD

        for group in self._iterate_listing(
            report, self.group_client.list_groups, "resource groups"
        ):
            # Groups outside the CI naming convention are never considered
            if not is_ci_resource(group.name):
                continue

            self.logger.debug(f"check resource group {group.name!r}")
            if not group_should_be_deleted(group, now):
                self.logger.debug(
                    f"keeping resource group {group.name!r}",
                    extra={
                        "resource_name": group.name,
                        "provisioning_state": group.provisioning_state,
                    },
                )
                continue

            self._checkpoint()
            try:
                active = self.group_has_activity(group.name, since)
            except Exception as e:
                self._record_failure(
                    report,
                    ResourceOperationError(self.resource_kind, group.name, "check activity of", e),
                    f"failed to check resource group {group.name!r}, skipping",
                    resource_name=group.name,
                )
                continue

            if active:
                self.logger.debug(
                    f"resource group {group.name!r} had recent activity, keeping it",
                    extra={"resource_name": group.name, "since": since.isoformat()},
                )
                continue

            self._delete_group(group, report)

        return report

    def group_has_activity(self, group_name: str, since: datetime.datetime) -> bool:
        events = self.activity_client.list_events(activity_filter(group_name, since))
        return next(iter(events), None) is not None

    def _delete_group(self, group: ResourceGroup, report: CleanerReport) -> None:
        self.logger.debug(f"ensuring deletion of resource group {group.name!r}")

        self._checkpoint()
        try:
            pending = self.group_client.delete_group(group.name)
            self._checkpoint()
            self.group_client.await_deletion(pending)
        except CleanupCancelledError:
            raise
        except Exception as e:
            if is_not_found(e):
                self.logger.debug(f"resource group {group.name!r} already gone")
                return
            self._record_failure(
                report,
                ResourceOperationError(self.resource_kind, group.name, "delete", e),
                f"did not ensure deletion for resource group {group.name!r}",
                resource_name=group.name,
            )
            return

        self._record_deletion(report, group.name, "inactive CI resource group")
