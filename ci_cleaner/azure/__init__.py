"""Azure CI resource cleanup (resource groups and their installation side leftovers)."""

from .cleaner import build_azure_orchestrator, new_azure_orchestrator
from .dns_records import DelegateDNSRecordCleaner, DNSRecordSetCleaner
from .peerings import PeeringCleaner
from .resource_groups import ResourceGroupCleaner
from .vpn_connections import VPNConnectionCleaner

__all__ = [
    "DelegateDNSRecordCleaner",
    "DNSRecordSetCleaner",
    "PeeringCleaner",
    "ResourceGroupCleaner",
    "VPNConnectionCleaner",
    "build_azure_orchestrator",
    "new_azure_orchestrator",
]
