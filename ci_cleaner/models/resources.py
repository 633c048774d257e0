"""Read-only snapshots of the cloud resources inspected during a run."""

from __future__ import annotations
import datetime
from dataclasses import dataclass

# CloudFormation statuses of stacks that are already going away
STACK_DELETING_STATUSES = frozenset({"DELETE_IN_PROGRESS", "DELETE_COMPLETE"})

# Azure provisioning states of groups that are already going away
GROUP_DELETING_STATES = frozenset({"Deleting", "Deleted"})

# Marks a stack that provisioned a tenant cluster master instance
TENANT_STACK_OUTPUT_KEY = "MasterImageID"

PEERING_STATE_DISCONNECTED = "Disconnected"


@dataclass(frozen=True)
class Stack:
    name: str
    creation_time: datetime.datetime | None
    status: str = ""
    output_keys: tuple[str, ...] = ()

    @property
    def is_deleting(self) -> bool:
        return self.status in STACK_DELETING_STATUSES

    @property
    def is_tenant(self) -> bool:
        return TENANT_STACK_OUTPUT_KEY in self.output_keys


@dataclass(frozen=True)
class Bucket:
    name: str
    creation_time: datetime.datetime | None


@dataclass(frozen=True)
class ObjectPage:
    """One page of an object listing."""

    keys: tuple[str, ...]
    next_token: str | None = None

    @property
    def is_truncated(self) -> bool:
        return self.next_token is not None


@dataclass(frozen=True)
class ResourceGroup:
    name: str
    creation_time: datetime.datetime | None
    provisioning_state: str = ""

    @property
    def is_deleting(self) -> bool:
        return self.provisioning_state in GROUP_DELETING_STATES


@dataclass(frozen=True)
class NetworkPeering:
    name: str
    peering_state: str = ""

    @property
    def is_disconnected(self) -> bool:
        return self.peering_state == PEERING_STATE_DISCONNECTED


@dataclass(frozen=True)
class VirtualNetwork:
    name: str
    peerings: tuple[NetworkPeering, ...] = ()


@dataclass(frozen=True)
class DNSRecordSet:
    name: str
    etag: str | None = None


@dataclass(frozen=True)
class GatewayConnection:
    name: str
