"""AWS account cleanup: CloudFormation stacks, then S3 buckets."""

from __future__ import annotations

import boto3
from aws_lambda_powertools import Logger

from ..models import AWSConfig
from ..orchestrator import Orchestrator
from .buckets import BucketCleaner
from .clients import InstanceClient, ObjectStorageClient, StackClient, new_clients
from .stacks import StackCleaner


def new_session(config: AWSConfig) -> boto3.session.Session:
    """Create a boto3 session, falling back to the default credential chain."""
    if config.access_key_id:
        return boto3.session.Session(
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
        )
    return boto3.session.Session(region_name=config.region)


def build_aws_orchestrator(
    stack_client: StackClient,
    instance_client: InstanceClient,
    storage_client: ObjectStorageClient,
    logger: Logger,
) -> Orchestrator:
    return Orchestrator(
        "aws",
        [
            StackCleaner(stack_client, instance_client, logger),
            BucketCleaner(storage_client, logger),
        ],
        logger,
    )


def new_aws_orchestrator(config: AWSConfig, logger: Logger) -> Orchestrator:
    config.validate()
    stack_client, instance_client, storage_client = new_clients(new_session(config))
    return build_aws_orchestrator(stack_client, instance_client, storage_client, logger)
