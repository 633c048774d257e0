"""AWS CI resource cleanup (CloudFormation stacks and S3 buckets)."""

from .buckets import BucketCleaner
from .cleaner import build_aws_orchestrator, new_aws_orchestrator
from .stacks import StackCleaner

__all__ = [
    "BucketCleaner",
    "StackCleaner",
    "build_aws_orchestrator",
    "new_aws_orchestrator",
]
