"""Integration tests for a full AWS cleanup run against in-memory collaborators."""

from __future__ import annotations
import pytest
from freezegun import freeze_time

from ci_cleaner.aws import build_aws_orchestrator
from ci_cleaner.errors import ResourceOperationError
from tests.fakes import FakeInstanceClient, FakeObjectStorageClient, FakeStackClient, client_error


@pytest.fixture
def aws_account(make_stack, make_bucket):
    stacks = FakeStackClient(
        [
            make_stack("cluster-ci-tenant", tenant=True),
            make_stack("host-peer-ci-abc"),
            make_stack("ci-cur-young", hours_old=0.5),
            make_stack("production-vpc", hours_old=5000),
        ]
    )
    instances = FakeInstanceClient({"cluster-ci-tenant": ["i-master"]})
    storage = FakeObjectStorageClient(
        [
            make_bucket("ci-cur-logs"),
            make_bucket("ci-abc-g8s-access-logs"),
            make_bucket("company-backups", hours_old=5000),
        ],
        {"ci-cur-logs": [f"k{i}" for i in range(1500)]},
    )
    return stacks, instances, storage


@pytest.mark.aws
class TestAWSOrchestration:
    @freeze_time("2024-03-01 12:00:00")
    def test_full_run_deletes_only_old_ci_resources(self, aws_account, logger):
        """
        GIVEN an account with old and young CI stacks and buckets next to production ones
        WHEN a full AWS cleanup runs
        THEN only the old CI resources are deleted and the run is clean
        """
        stacks, instances, storage = aws_account

        result = build_aws_orchestrator(stacks, instances, storage, logger).clean()

        assert result.ok
        assert result.summary() == {"stack": 2, "bucket": 2}
        assert sorted(storage.buckets) == ["company-backups"]
        assert ("delete_stack", "production-vpc") not in stacks.calls
        assert ("delete_stack", "ci-cur-young") not in stacks.calls
        assert ("disable_instance_termination_protection", "i-master") in instances.calls

    @freeze_time("2024-03-01 12:00:00")
    def test_second_run_deletes_nothing(self, aws_account, logger):
        """
        GIVEN an account that was just cleaned
        WHEN the cleanup runs a second time
        THEN no further resource is deleted and no error is reported
        """
        stacks, instances, storage = aws_account
        orchestrator = build_aws_orchestrator(stacks, instances, storage, logger)
        orchestrator.clean()

        result = orchestrator.clean()

        assert result.ok
        assert result.actions == []

    @freeze_time("2024-03-01 12:00:00")
    def test_stack_failure_does_not_prevent_bucket_cleanup(self, aws_account, logger):
        """
        GIVEN stack listing is denied
        WHEN a full AWS cleanup runs
        THEN buckets are still cleaned and the listing error is reported
        """
        stacks, instances, storage = aws_account
        stacks.list_error = client_error("AccessDenied", "not allowed")

        result = build_aws_orchestrator(stacks, instances, storage, logger).clean()

        assert not result.ok
        assert len(result.errors) == 1
        assert result.summary() == {"bucket": 2}
        assert "- list stacks: " in result.errors.dump()

    @freeze_time("2024-03-01 12:00:00")
    def test_failure_on_third_stack_is_the_only_error(self, make_stack, make_bucket, logger):
        """
        GIVEN three old CI stacks where deleting the third one fails
        WHEN a full AWS cleanup runs
        THEN the first two stacks and every CI bucket are still deleted
        AND the run holds exactly the error of the third stack
        """
        stacks = FakeStackClient(
            [make_stack("ci-cur-one"), make_stack("ci-cur-two"), make_stack("ci-cur-three")]
        )
        stacks.delete_errors["ci-cur-three"] = client_error("Throttling", "Rate exceeded")
        storage = FakeObjectStorageClient(
            [make_bucket("ci-cur-logs"), make_bucket("ci-wip-state")],
            {"ci-cur-logs": ["a", "b"]},
        )

        result = build_aws_orchestrator(stacks, FakeInstanceClient(), storage, logger).clean()

        errors = result.errors.flatten()
        assert len(errors) == 1
        assert isinstance(errors[0], ResourceOperationError)
        assert (errors[0].kind, errors[0].name, errors[0].operation) == (
            "stack",
            "ci-cur-three",
            "delete",
        )
        assert [a.name for a in result.actions if a.resource_kind == "stack"] == [
            "ci-cur-one",
            "ci-cur-two",
        ]
        assert storage.deleted_buckets == ["ci-cur-logs", "ci-wip-state"]
