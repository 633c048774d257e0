"""Pytest configuration and shared fixtures for ci-cleaner tests."""

from __future__ import annotations
import pytest
from aws_lambda_powertools import Logger

from ci_cleaner.models import (
    Bucket,
    NetworkPeering,
    ResourceGroup,
    Stack,
    VirtualNetwork,
)
from tests.fakes import NOW, hours_ago


@pytest.fixture
def now():
    """Fixed reference time of a run."""
    return NOW


@pytest.fixture(scope="session")
def logger():
    return Logger(service="ci-cleaner-test", level="DEBUG")


@pytest.fixture
def make_stack():
    """Factory for stack snapshots, ``hours_old=None`` means no creation time."""

    def _make(
        name: str,
        hours_old: float | None = 3,
        status: str = "CREATE_COMPLETE",
        tenant: bool = False,
    ) -> Stack:
        return Stack(
            name=name,
            creation_time=None if hours_old is None else hours_ago(hours_old),
            status=status,
            output_keys=("MasterImageID", "VPCID") if tenant else ("VPCID",),
        )

    return _make


@pytest.fixture
def make_bucket():
    def _make(name: str, hours_old: float | None = 3) -> Bucket:
        return Bucket(name, None if hours_old is None else hours_ago(hours_old))

    return _make


@pytest.fixture
def make_group():
    def _make(
        name: str, hours_old: float | None = 3, state: str = "Succeeded"
    ) -> ResourceGroup:
        return ResourceGroup(
            name, None if hours_old is None else hours_ago(hours_old), state
        )

    return _make


@pytest.fixture
def make_network():
    """Factory for a network with ``(peering name, state)`` pairs."""

    def _make(name: str, *peerings: tuple[str, str]) -> VirtualNetwork:
        return VirtualNetwork(name, tuple(NetworkPeering(p, s) for p, s in peerings))

    return _make
