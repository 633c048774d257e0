"""CloudFormation stack cleanup."""

from __future__ import annotations
import datetime

from aws_lambda_powertools import Logger

from ..base import CleanerReport, ResourceCleaner
from ..errors import InvalidConfigError, ResourceOperationError, is_not_found
from ..models import Stack
from ..policies import stack_should_be_deleted
from .clients import InstanceClient, StackClient


class StackCleaner(ResourceCleaner):
    """Deletes old CI stacks.

    Deletion sequence per eligible stack:

    1. tenant stacks only: disable termination protection of the master
       instance(s) the stack created
    2. disable termination protection of the stack
    3. delete the stack

    A failing step skips the rest of the sequence for that stack only.
    """

    name = "stacks"
    resource_kind = "stack"

    def __init__(
        self, stack_client: StackClient, instance_client: InstanceClient, logger: Logger
    ):
        if stack_client is None:
            raise InvalidConfigError("StackCleaner.stack_client must not be empty")
        if instance_client is None:
            raise InvalidConfigError("StackCleaner.instance_client must not be empty")
        super().__init__(logger)
        self.stack_client = stack_client
        self.instance_client = instance_client

    def clean(self, now: datetime.datetime) -> CleanerReport:
        report = CleanerReport()

        for stack in self._iterate_listing(report, self.stack_client.list_stacks, "stacks"):
            if not stack_should_be_deleted(stack, now):
                self.logger.debug(
                    f"keeping stack {stack.name!r}",
                    extra={"resource_name": stack.name, "status": stack.status},
                )
                continue

            self.logger.info(
                f"found that stack {stack.name!r} should be deleted",
                extra={"resource_name": stack.name, "status": stack.status},
            )
            self._delete_stack(stack, report)

        return report

    def _delete_stack(self, stack: Stack, report: CleanerReport) -> None:
        if stack.is_tenant:
            self.logger.debug(
                f"disabling termination protection for master instances of stack {stack.name!r}"
            )
            try:
                self._disable_master_termination_protection(stack.name)
            except Exception as e:
                self._record_failure(
                    report,
                    ResourceOperationError(
                        self.resource_kind, stack.name, "disable instance protection", e
                    ),
                    f"failed disabling termination protection for master instances "
                    f"of stack {stack.name!r}, skipping deletion",
                    resource_name=stack.name,
                )
                return

        self.logger.debug(f"disabling termination protection for stack {stack.name!r}")
        try:
            self.stack_client.disable_stack_protection(stack.name)
        except Exception as e:
            self._record_failure(
                report,
                ResourceOperationError(
                    self.resource_kind, stack.name, "disable termination protection", e
                ),
                f"failed disabling termination protection for stack {stack.name!r}, "
                "skipping deletion",
                resource_name=stack.name,
            )
            return

        try:
            self.stack_client.delete_stack(stack.name)
        except Exception as e:
            if is_not_found(e):
                self.logger.info(f"stack {stack.name!r} already gone")
                return
            self._record_failure(
                report,
                ResourceOperationError(self.resource_kind, stack.name, "delete", e),
                f"failed deleting stack {stack.name!r}",
                resource_name=stack.name,
                status=stack.status,
            )
            return

        self._record_deletion(
            report,
            stack.name,
            "tenant CI stack past grace period" if stack.is_tenant else "CI stack past grace period",
        )

    def _disable_master_termination_protection(self, stack_name: str) -> None:
        instance_ids = self.instance_client.find_instances_by_stack_tag(stack_name)

        # No masters means nothing is protected
        if not instance_ids:
            return

        for instance_id in instance_ids:
            self.instance_client.disable_instance_termination_protection(instance_id)
