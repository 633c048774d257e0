"""Unit tests for CloudFormation stack cleanup."""

from __future__ import annotations
import pytest

from ci_cleaner.aws.stacks import StackCleaner
from ci_cleaner.errors import InvalidConfigError, ResourceOperationError
from tests.fakes import NOW, FakeInstanceClient, FakeStackClient, client_error


@pytest.mark.unit
@pytest.mark.aws
class TestStackCleaner:
    """Test stack selection and the deletion sequence."""

    def test_requires_collaborators(self, logger):
        with pytest.raises(InvalidConfigError, match="stack_client"):
            StackCleaner(None, FakeInstanceClient(), logger)
        with pytest.raises(InvalidConfigError, match="instance_client"):
            StackCleaner(FakeStackClient(), None, logger)

    def test_deletes_only_eligible_stacks(self, logger, make_stack):
        """
        GIVEN an old CI stack, a young CI stack, a deleting stack and a production stack
        WHEN the stack cleaner runs
        THEN only the old CI stack is deleted
        """
        stacks = FakeStackClient(
            [
                make_stack("ci-cur-old"),
                make_stack("ci-cur-young", hours_old=1),
                make_stack("ci-cur-going", status="DELETE_IN_PROGRESS"),
                make_stack("production"),
            ]
        )
        cleaner = StackCleaner(stacks, FakeInstanceClient(), logger)

        report = cleaner.clean(NOW)

        assert stacks.calls == [
            ("disable_stack_protection", "ci-cur-old"),
            ("delete_stack", "ci-cur-old"),
        ]
        assert [a.name for a in report.actions] == ["ci-cur-old"]
        assert not report.errors.has_errors()

    def test_plain_stack_skips_instance_lookup(self, logger, make_stack):
        """
        GIVEN stack cluster-ci-foo created 3 hours ago without tenant outputs
        WHEN the stack cleaner runs
        THEN stack protection is disabled and the stack deleted without any instance lookup
        """
        stacks = FakeStackClient([make_stack("cluster-ci-foo")])
        instances = FakeInstanceClient()

        StackCleaner(stacks, instances, logger).clean(NOW)

        assert instances.calls == []
        assert stacks.calls == [
            ("disable_stack_protection", "cluster-ci-foo"),
            ("delete_stack", "cluster-ci-foo"),
        ]

    def test_tenant_stack_disables_master_protection_first(self, logger, make_stack):
        """
        GIVEN an old tenant stack with one master instance
        WHEN the stack cleaner runs
        THEN instance protection is disabled before stack protection and deletion
        """
        stacks = FakeStackClient([make_stack("cluster-ci-abc", tenant=True)])
        instances = FakeInstanceClient({"cluster-ci-abc": ["i-master"]})

        report = StackCleaner(stacks, instances, logger).clean(NOW)

        assert instances.calls == [
            ("find_instances_by_stack_tag", "cluster-ci-abc"),
            ("disable_instance_termination_protection", "i-master"),
        ]
        assert stacks.calls == [
            ("disable_stack_protection", "cluster-ci-abc"),
            ("delete_stack", "cluster-ci-abc"),
        ]
        assert report.actions[0].reason == "tenant CI stack past grace period"

    def test_tenant_stack_without_masters_is_deleted(self, logger, make_stack):
        stacks = FakeStackClient([make_stack("cluster-ci-abc", tenant=True)])

        report = StackCleaner(stacks, FakeInstanceClient(), logger).clean(NOW)

        assert ("delete_stack", "cluster-ci-abc") in stacks.calls
        assert len(report.actions) == 1

    def test_protection_failure_skips_only_that_stack(self, logger, make_stack):
        """
        GIVEN stacks A and B where disabling termination protection of A fails
        WHEN the stack cleaner runs
        THEN A is not deleted, B is deleted and exactly one error is recorded
        """
        stacks = FakeStackClient([make_stack("ci-cur-a"), make_stack("ci-cur-b")])
        stacks.protection_errors["ci-cur-a"] = client_error("AccessDenied", "denied")

        report = StackCleaner(stacks, FakeInstanceClient(), logger).clean(NOW)

        assert ("delete_stack", "ci-cur-a") not in stacks.calls
        assert ("delete_stack", "ci-cur-b") in stacks.calls
        assert [a.name for a in report.actions] == ["ci-cur-b"]
        errors = report.errors.flatten()
        assert len(errors) == 1
        assert isinstance(errors[0], ResourceOperationError)
        assert errors[0].name == "ci-cur-a"

    def test_instance_lookup_failure_skips_stack(self, logger, make_stack):
        stacks = FakeStackClient([make_stack("cluster-ci-abc", tenant=True)])
        instances = FakeInstanceClient()
        instances.find_errors["cluster-ci-abc"] = client_error("Throttling", "slow down")

        report = StackCleaner(stacks, instances, logger).clean(NOW)

        assert stacks.calls == []
        assert len(report.errors) == 1

    def test_instance_protection_failure_skips_stack(self, logger, make_stack):
        stacks = FakeStackClient([make_stack("cluster-ci-abc", tenant=True)])
        instances = FakeInstanceClient({"cluster-ci-abc": ["i-1", "i-2"]})
        instances.protection_errors["i-1"] = client_error("UnauthorizedOperation")

        report = StackCleaner(stacks, instances, logger).clean(NOW)

        assert stacks.calls == []
        assert ("disable_instance_termination_protection", "i-2") not in instances.calls
        assert len(report.errors) == 1

    def test_missing_stack_on_delete_is_success(self, logger, make_stack):
        """
        GIVEN a stack that disappears between listing and deletion
        WHEN the stack cleaner deletes it
        THEN no error is recorded
        """
        stacks = FakeStackClient([make_stack("ci-cur-a")])
        stacks.delete_errors["ci-cur-a"] = client_error(
            "ValidationError", "Stack with id ci-cur-a does not exist"
        )

        report = StackCleaner(stacks, FakeInstanceClient(), logger).clean(NOW)

        assert not report.errors.has_errors()
        assert report.actions == []

    def test_delete_failure_is_recorded(self, logger, make_stack):
        stacks = FakeStackClient([make_stack("ci-cur-a"), make_stack("e2e-b")])
        stacks.delete_errors["ci-cur-a"] = client_error("Throttling", "Rate exceeded")

        report = StackCleaner(stacks, FakeInstanceClient(), logger).clean(NOW)

        assert len(report.errors) == 1
        assert [a.name for a in report.actions] == ["e2e-b"]

    def test_listing_failure_is_recorded(self, logger):
        """
        GIVEN a stack listing that fails
        WHEN the stack cleaner runs
        THEN a single listing error is recorded and nothing is deleted
        """
        stacks = FakeStackClient()
        stacks.list_error = client_error("AccessDenied", "denied")

        report = StackCleaner(stacks, FakeInstanceClient(), logger).clean(NOW)

        errors = report.errors.flatten()
        assert len(errors) == 1
        assert errors[0].operation == "list"
        assert str(errors[0]).startswith("list stacks: ")
        assert stacks.calls == []

    def test_second_run_is_idempotent(self, logger, make_stack):
        """
        GIVEN a run that already deleted an old CI stack
        WHEN the cleaner runs again
        THEN the stack is seen as deleting and left alone
        """
        stacks = FakeStackClient([make_stack("ci-cur-a")])
        cleaner = StackCleaner(stacks, FakeInstanceClient(), logger)
        cleaner.clean(NOW)
        stacks.calls.clear()

        report = cleaner.clean(NOW)

        assert stacks.calls == []
        assert report.actions == []
