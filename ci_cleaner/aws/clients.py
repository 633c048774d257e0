"""AWS collaborators used by the cleaners.

The cleaners only see the small protocols below. The ``Boto3*`` classes
implement them on top of boto3 clients.
"""

from __future__ import annotations
from typing import Any, Iterable, Protocol, Sequence

import boto3

from ..models import Bucket, ObjectPage, Stack


class StackClient(Protocol):
    def list_stacks(self) -> Iterable[Stack]:
        ...

    def disable_stack_protection(self, name: str) -> None:
        ...

    def delete_stack(self, name: str) -> None:
        ...


class InstanceClient(Protocol):
    def find_instances_by_stack_tag(self, stack_name: str) -> list[str]:
        ...

    def disable_instance_termination_protection(self, instance_id: str) -> None:
        ...


class ObjectStorageClient(Protocol):
    def list_buckets(self) -> Iterable[Bucket]:
        ...

    def list_objects(self, bucket: str, continuation_token: str | None) -> ObjectPage:
        ...

    def delete_objects_batch(self, bucket: str, keys: Sequence[str]) -> None:
        ...

    def delete_bucket(self, bucket: str) -> None:
        ...


class BatchDeleteError(Exception):
    """S3 accepted a batch delete but refused some of the keys."""

    def __init__(self, bucket: str, errors: list[dict[str, Any]]):
        self.bucket = bucket
        self.errors = errors
        first = errors[0]
        super().__init__(
            f"failed deleting {len(errors)} objects from bucket {bucket!r}, "
            f"first: {first.get('Key')} {first.get('Code')} {first.get('Message')}"
        )


class Boto3StackClient:
    """CloudFormation backed ``StackClient``."""

    def __init__(self, cfn_client):
        self._cfn = cfn_client

    def list_stacks(self) -> Iterable[Stack]:
        paginator = self._cfn.get_paginator("describe_stacks")
        for page in paginator.paginate():
            for stack in page.get("Stacks", []):
                yield Stack(
                    name=stack["StackName"],
                    creation_time=stack.get("CreationTime"),
                    status=stack.get("StackStatus", ""),
                    output_keys=tuple(
                        o["OutputKey"] for o in stack.get("Outputs", []) if "OutputKey" in o
                    ),
                )

    def disable_stack_protection(self, name: str) -> None:
        self._cfn.update_termination_protection(
            EnableTerminationProtection=False, StackName=name
        )

    def delete_stack(self, name: str) -> None:
        self._cfn.delete_stack(StackName=name)


class Boto3InstanceClient:
    """EC2 backed ``InstanceClient`` for tenant cluster master instances."""

    def __init__(self, ec2_client):
        self._ec2 = ec2_client

    def find_instances_by_stack_tag(self, stack_name: str) -> list[str]:
        response = self._ec2.describe_instances(
            Filters=[
                {"Name": "tag:aws:cloudformation:stack-name", "Values": [stack_name]},
                {"Name": "tag:Name", "Values": ["*-master"]},
            ]
        )
        return [
            instance["InstanceId"]
            for reservation in response.get("Reservations", [])
            for instance in reservation.get("Instances", [])
        ]

    def disable_instance_termination_protection(self, instance_id: str) -> None:
        self._ec2.modify_instance_attribute(
            InstanceId=instance_id, DisableApiTermination={"Value": False}
        )


class Boto3ObjectStorageClient:
    """S3 backed ``ObjectStorageClient``."""

    def __init__(self, s3_client):
        self._s3 = s3_client

    def list_buckets(self) -> Iterable[Bucket]:
        response = self._s3.list_buckets()
        return [
            Bucket(name=b["Name"], creation_time=b.get("CreationDate"))
            for b in response.get("Buckets", [])
        ]

    def list_objects(self, bucket: str, continuation_token: str | None) -> ObjectPage:
        kwargs: dict[str, Any] = {"Bucket": bucket}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        response = self._s3.list_objects_v2(**kwargs)

        next_token = None
        if response.get("IsTruncated"):
            next_token = response.get("NextContinuationToken")
        return ObjectPage(
            keys=tuple(obj["Key"] for obj in response.get("Contents", [])),
            next_token=next_token,
        )

    def delete_objects_batch(self, bucket: str, keys: Sequence[str]) -> None:
        response = self._s3.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
        )
        if response.get("Errors"):
            raise BatchDeleteError(bucket, response["Errors"])

    def delete_bucket(self, bucket: str) -> None:
        self._s3.delete_bucket(Bucket=bucket)


def new_clients(
    session: boto3.session.Session,
) -> tuple[Boto3StackClient, Boto3InstanceClient, Boto3ObjectStorageClient]:
    """Build the AWS collaborators from one boto3 session."""
    return (
        Boto3StackClient(session.client("cloudformation")),
        Boto3InstanceClient(session.client("ec2")),
        Boto3ObjectStorageClient(session.client("s3")),
    )
