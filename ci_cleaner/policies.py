"""Deletion eligibility policies for CI resources.

Every ``*_should_be_deleted`` function applies the same rules, first match
wins:

1. no creation time recorded -> delete (malformed resource)
2. younger than the grace period -> keep
3. deletion already underway or complete -> keep
4. name matches a CI pattern of the resource kind -> delete
5. anything else -> keep
"""

from __future__ import annotations
import datetime

from .models.config import GRACE_PERIOD
from .models.resources import Bucket, ResourceGroup, Stack
from .utils.naming import NamePattern, age, matches_any, prefixes, substrings

STACK_PATTERNS = prefixes(
    "cluster-ci-",
    "host-peer-ci-",
    "e2e-",
    "ci-",
)

BUCKET_PATTERNS = (
    prefixes("ci-last-", "ci-prev-", "ci-cur-", "ci-wip-")
    + substrings("g8s-ci-cur-", "g8s-ci-wip-", "g8s-ci-clop-")
    + (NamePattern(prefix="ci-", suffix="-g8s-access-logs"),)
    + substrings("-g8s-ci-")
)

# Resource groups, vnet peerings, DNS record sets and VPN connections
AZURE_CI_PATTERNS = prefixes("ci-cur-", "ci-wip-")


def _should_be_deleted(
    name: str,
    creation_time: datetime.datetime | None,
    deleting: bool,
    patterns: tuple[NamePattern, ...],
    now: datetime.datetime,
) -> bool:
    if creation_time is None:
        return True

    if age(creation_time, now) < GRACE_PERIOD:
        return False

    if deleting:
        return False

    return matches_any(name, patterns)


def stack_should_be_deleted(stack: Stack, now: datetime.datetime) -> bool:
    return _should_be_deleted(
        stack.name, stack.creation_time, stack.is_deleting, STACK_PATTERNS, now
    )


def bucket_should_be_deleted(bucket: Bucket, now: datetime.datetime) -> bool:
    return _should_be_deleted(
        bucket.name, bucket.creation_time, False, BUCKET_PATTERNS, now
    )


def group_should_be_deleted(group: ResourceGroup, now: datetime.datetime) -> bool:
    return _should_be_deleted(
        group.name, group.creation_time, group.is_deleting, AZURE_CI_PATTERNS, now
    )


def is_ci_resource(name: str) -> bool:
    """Check whether an Azure resource name follows the CI naming convention."""
    return matches_any(name, AZURE_CI_PATTERNS)


def is_orphaned(name: str, ci_group_names: set[str]) -> bool:
    """A CI resource is orphaned when no resource group of the same name exists."""
    return is_ci_resource(name) and name not in ci_group_names
