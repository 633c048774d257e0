"""Virtual network peering cleanup.

E2E tests peer their tenant networks with the installation's control plane
network. When the tenant resource group is gone the peering stays behind
in the ``Disconnected`` state.
"""

from __future__ import annotations
import datetime
import threading
from functools import partial
import time
from typing import Sequence

from aws_lambda_powertools import Logger

from ..base import CleanerReport, ResourceCleaner
from ..errors import (
    CleanupCancelledError,
    InvalidConfigError,
    ResourceOperationError,
    is_not_found,
)
from ..models import NetworkPeering
from ..models.config import PEERING_DELETE_DELAY_SECONDS
from ..policies import is_ci_resource
from .clients import PeeringClient, ResourceGroupClient, VirtualNetworkClient


class PeeringCleaner(ResourceCleaner):
    """Deletes CI peerings whose resource group is gone and that are disconnected."""

    name = "vnet_peerings"
    resource_kind = "vnet_peering"

    def __init__(
        self,
        network_client: VirtualNetworkClient,
        peering_client: PeeringClient,
        group_client: ResourceGroupClient,
        installations: Sequence[str],
        logger: Logger,
        cancel_event: threading.Event | None = None,
        delete_delay: float = PEERING_DELETE_DELAY_SECONDS,
    ):
        if network_client is None:
            raise InvalidConfigError("PeeringCleaner.network_client must not be empty")
        if peering_client is None:
            raise InvalidConfigError("PeeringCleaner.peering_client must not be empty")
        if group_client is None:
            raise InvalidConfigError("PeeringCleaner.group_client must not be empty")
        if not installations or any(not i for i in installations):
            raise InvalidConfigError(
                "PeeringCleaner.installations must contain non empty items"
            )
        super().__init__(logger, cancel_event)
        self.network_client = network_client
        self.peering_client = peering_client
        self.group_client = group_client
        self.installations = list(installations)
        self.delete_delay = delete_delay

    def clean(self, now: datetime.datetime) -> CleanerReport:
        report = CleanerReport()

        for installation in self.installations:
            networks = self._iterate_listing(
                report,
                partial(self.network_client.list_networks, installation),
                f"virtual networks of {installation}",
            )
            for network in networks:
                for peering in network.peerings:
                    self._clean_peering(installation, network.name, peering, report)

        return report

    def _clean_peering(
        self,
        installation: str,
        network: str,
        peering: NetworkPeering,
        report: CleanerReport,
    ) -> None:
        if not is_ci_resource(peering.name):
            return

        self._checkpoint()
        try:
            orphaned = self._group_is_gone(peering.name)
        except CleanupCancelledError:
            raise
        except Exception as e:
            self._record_failure(
                report,
                ResourceOperationError(self.resource_kind, peering.name, "look up group of", e),
                f"failed looking up resource group of vnet peering {peering.name!r}",
                resource_name=peering.name,
                installation=installation,
            )
            return

        if not orphaned or not peering.is_disconnected:
            self.logger.debug(
                f"keeping vnet peering {peering.name!r}",
                extra={
                    "resource_name": peering.name,
                    "group_exists": not orphaned,
                    "peering_state": peering.peering_state,
                },
            )
            return

        self.logger.debug(f"deleting vnet peering {peering.name!r}")
        self._checkpoint()
        try:
            self.peering_client.delete_peering(installation, network, peering.name)
        except Exception as e:
            if not is_not_found(e):
                self._record_failure(
                    report,
                    ResourceOperationError(self.resource_kind, peering.name, "delete", e),
                    f"failed deleting vnet peering {peering.name!r}",
                    resource_name=peering.name,
                    installation=installation,
                    network=network,
                )
                return
        else:
            self._record_deletion(
                report,
                peering.name,
                "disconnected CI peering without resource group",
                location=f"{installation}/{network}",
            )

        time.sleep(self.delete_delay)

    def _group_is_gone(self, name: str) -> bool:
        try:
            self.group_client.get_group(name)
        except Exception as e:
            if is_not_found(e):
                return True
            raise
        return False
