"""Azure subscription cleanup.

Cleaners run in dependency order: resource groups first, then the
installation side leftovers that only become orphaned once their group is
gone (peerings, DNS delegations and VPN connections).
"""

from __future__ import annotations
import threading

from aws_lambda_powertools import Logger

from ..models import AzureConfig
from ..orchestrator import Orchestrator
from .clients import AzureClients, new_credential
from .dns_records import DelegateDNSRecordCleaner, DNSRecordSetCleaner
from .peerings import PeeringCleaner
from .resource_groups import ResourceGroupCleaner
from .vpn_connections import VPNConnectionCleaner


def build_azure_orchestrator(
    clients: AzureClients,
    config: AzureConfig,
    logger: Logger,
    cancel_event: threading.Event | None = None,
) -> Orchestrator:
    installations = list(config.installations)
    cleaners = [
        ResourceGroupCleaner(clients.groups, clients.activity_logs, logger, cancel_event),
        PeeringCleaner(
            clients.networks,
            clients.peerings,
            clients.groups,
            installations,
            logger,
            cancel_event,
        ),
        DNSRecordSetCleaner(
            clients.dns,
            clients.groups,
            installations,
            config.location,
            logger,
            cancel_event,
        ),
        VPNConnectionCleaner(
            clients.connections, clients.groups, installations, logger, cancel_event
        ),
    ]
    if config.delegate_dns_zone:
        cleaners.append(
            DelegateDNSRecordCleaner(
                clients.dns, config.delegate_dns_zone, logger, cancel_event
            )
        )

    return Orchestrator("azure", cleaners, logger, cancel_event=cancel_event)


def new_azure_orchestrator(
    config: AzureConfig,
    logger: Logger,
    cancel_event: threading.Event | None = None,
) -> Orchestrator:
    config.validate()
    clients = AzureClients(new_credential(config), config.subscription_id)
    return build_azure_orchestrator(clients, config, logger, cancel_event)
