"""Data models for ci-cleaner."""

from .cleanup_action import CleanupAction
from .config import AWSConfig, AzureConfig
from .resources import (
    Bucket,
    DNSRecordSet,
    GatewayConnection,
    NetworkPeering,
    ObjectPage,
    ResourceGroup,
    Stack,
    VirtualNetwork,
)

__all__ = [
    "CleanupAction",
    "AWSConfig",
    "AzureConfig",
    "Bucket",
    "DNSRecordSet",
    "GatewayConnection",
    "NetworkPeering",
    "ObjectPage",
    "ResourceGroup",
    "Stack",
    "VirtualNetwork",
]
