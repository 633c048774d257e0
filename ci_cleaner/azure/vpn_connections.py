"""VPN gateway connection cleanup.

Connections are created in the installation resource group and named after
the CI resource group of the tenant cluster they connect.
"""

from __future__ import annotations
import threading
from typing import Iterable, Sequence

from aws_lambda_powertools import Logger

from ..errors import InvalidConfigError
from ..models import GatewayConnection
from .clients import GatewayConnectionClient, ResourceGroupClient
from .orphans import OrphanedResourceCleaner


class VPNConnectionCleaner(OrphanedResourceCleaner):
    name = "vpn_connections"
    resource_kind = "vpn_connection"

    def __init__(
        self,
        connection_client: GatewayConnectionClient,
        group_client: ResourceGroupClient,
        installations: Sequence[str],
        logger: Logger,
        cancel_event: threading.Event | None = None,
    ):
        if connection_client is None:
            raise InvalidConfigError(
                "VPNConnectionCleaner.connection_client must not be empty"
            )
        super().__init__(group_client, installations, logger, cancel_event)
        self.connection_client = connection_client

    def list_resources(self, installation: str) -> Iterable[GatewayConnection]:
        return self.connection_client.list_connections(installation)

    def group_name_of(self, resource: GatewayConnection) -> str:
        return resource.name

    def delete_resource(self, installation: str, resource: GatewayConnection) -> None:
        self.connection_client.delete_connection(installation, resource.name)
