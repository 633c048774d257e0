"""Azure collaborators used by the cleaners.

The cleaners only see the small protocols below. The ``Sdk*`` classes
implement them on top of the azure-mgmt-* management clients.
"""

from __future__ import annotations
from typing import Any, Iterable, Protocol

from azure.core.credentials import TokenCredential
from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.dns import DnsManagementClient
from azure.mgmt.monitor import MonitorManagementClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient

from ..models import (
    AzureConfig,
    DNSRecordSet,
    GatewayConnection,
    NetworkPeering,
    ResourceGroup,
    VirtualNetwork,
)
from ..utils.naming import parse_epoch_creation_time

NS_RECORD_TYPE = "NS"


class ResourceGroupClient(Protocol):
    def list_groups(self) -> Iterable[ResourceGroup]:
        ...

    def get_group(self, name: str) -> ResourceGroup:
        ...

    def delete_group(self, name: str) -> Any:
        """Start deleting a group and return the pending operation."""
        ...

    def await_deletion(self, pending: Any) -> None:
        ...


class ActivityLogClient(Protocol):
    def list_events(self, filter: str) -> Iterable[Any]:
        ...


class VirtualNetworkClient(Protocol):
    def list_networks(self, installation: str) -> Iterable[VirtualNetwork]:
        ...


class PeeringClient(Protocol):
    def delete_peering(self, installation: str, network: str, peering: str) -> None:
        ...


class DNSClient(Protocol):
    def list_record_sets(
        self, resource_group: str, zone: str, suffix: str | None = None
    ) -> Iterable[DNSRecordSet]:
        ...

    def delete_record_set(
        self, resource_group: str, zone: str, name: str, etag: str | None = None
    ) -> None:
        ...


class GatewayConnectionClient(Protocol):
    def list_connections(self, installation: str) -> Iterable[GatewayConnection]:
        ...

    def delete_connection(self, installation: str, name: str) -> None:
        ...


def _enum_value(value: Any) -> str:
    if value is None:
        return ""
    return str(getattr(value, "value", value))


def _to_resource_group(group: Any) -> ResourceGroup:
    properties = getattr(group, "properties", None)
    return ResourceGroup(
        name=group.name,
        creation_time=parse_epoch_creation_time(getattr(group, "tags", None)),
        provisioning_state=_enum_value(getattr(properties, "provisioning_state", None)),
    )


class SdkResourceGroupClient:
    def __init__(self, resource_client: ResourceManagementClient):
        self._client = resource_client

    def list_groups(self) -> Iterable[ResourceGroup]:
        for group in self._client.resource_groups.list():
            yield _to_resource_group(group)

    def get_group(self, name: str) -> ResourceGroup:
        return _to_resource_group(self._client.resource_groups.get(name))

    def delete_group(self, name: str) -> Any:
        return self._client.resource_groups.begin_delete(name)

    def await_deletion(self, pending: Any) -> None:
        pending.result()


class SdkActivityLogClient:
    def __init__(self, monitor_client: MonitorManagementClient):
        self._client = monitor_client

    def list_events(self, filter: str) -> Iterable[Any]:
        return self._client.activity_logs.list(filter=filter)


class SdkVirtualNetworkClient:
    def __init__(self, network_client: NetworkManagementClient):
        self._client = network_client

    def list_networks(self, installation: str) -> Iterable[VirtualNetwork]:
        for vnet in self._client.virtual_networks.list(installation):
            yield VirtualNetwork(
                name=vnet.name,
                peerings=tuple(
                    NetworkPeering(name=p.name, peering_state=_enum_value(p.peering_state))
                    for p in (vnet.virtual_network_peerings or [])
                ),
            )


class SdkPeeringClient:
    def __init__(self, network_client: NetworkManagementClient):
        self._client = network_client

    def delete_peering(self, installation: str, network: str, peering: str) -> None:
        self._client.virtual_network_peerings.begin_delete(
            installation, network, peering
        ).result()


class SdkDNSClient:
    def __init__(self, dns_client: DnsManagementClient):
        self._client = dns_client

    def list_record_sets(
        self, resource_group: str, zone: str, suffix: str | None = None
    ) -> Iterable[DNSRecordSet]:
        for record in self._client.record_sets.list_by_type(
            resource_group, zone, NS_RECORD_TYPE, recordsetnamesuffix=suffix
        ):
            yield DNSRecordSet(name=record.name, etag=record.etag)

    def delete_record_set(
        self, resource_group: str, zone: str, name: str, etag: str | None = None
    ) -> None:
        self._client.record_sets.delete(
            resource_group, zone, name, NS_RECORD_TYPE, if_match=etag
        )


class SdkGatewayConnectionClient:
    def __init__(self, network_client: NetworkManagementClient):
        self._client = network_client

    def list_connections(self, installation: str) -> Iterable[GatewayConnection]:
        for connection in self._client.virtual_network_gateway_connections.list(installation):
            yield GatewayConnection(name=connection.name)

    def delete_connection(self, installation: str, name: str) -> None:
        self._client.virtual_network_gateway_connections.begin_delete(
            installation, name
        ).result()


def new_credential(config: AzureConfig) -> TokenCredential:
    """Service principal credential when a secret is configured, default chain otherwise."""
    if config.client_secret:
        return ClientSecretCredential(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            client_secret=config.client_secret,
        )
    return DefaultAzureCredential()


class AzureClients:
    """All Azure collaborators for one subscription."""

    def __init__(self, credential: TokenCredential, subscription_id: str):
        resource_client = ResourceManagementClient(credential, subscription_id)
        network_client = NetworkManagementClient(credential, subscription_id)

        self.groups = SdkResourceGroupClient(resource_client)
        self.activity_logs = SdkActivityLogClient(
            MonitorManagementClient(credential, subscription_id)
        )
        self.networks = SdkVirtualNetworkClient(network_client)
        self.peerings = SdkPeeringClient(network_client)
        self.dns = SdkDNSClient(DnsManagementClient(credential, subscription_id))
        self.connections = SdkGatewayConnectionClient(network_client)
