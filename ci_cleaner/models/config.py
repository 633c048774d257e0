"""Configuration from environment variables and command-line flags."""

from __future__ import annotations
import datetime
import os
from dataclasses import dataclass, field, replace

from ..errors import InvalidConfigError

# CI resources older than this are eligible for deletion.
GRACE_PERIOD = datetime.timedelta(minutes=90)

# S3 DeleteObjects accepts at most 1000 keys per call.
S3_DELETE_BATCH_SIZE = 1000

# Azure needs a moment before the next peering change is accepted.
PEERING_DELETE_DELAY_SECONDS = 1.0

# Azure DNS layout
ROOT_DNS_RESOURCE_GROUP = "root_dns_zone_rg"
DNS_ZONE_NAME_FORMAT = "{installation}.{location}.azure.gigantic.io"
RECORD_SET_NAME_SUFFIX = ".k8s"
DELEGATE_DNS_RECORD_PREFIX = "e2eterraform"

DEFAULT_INSTALLATIONS = "ghost,godsmack"

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def split_installations(raw: str) -> tuple[str, ...]:
    """Split a comma separated installation list, keeping empty items for validation."""
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(","))


@dataclass(frozen=True)
class AWSConfig:
    """Settings for one AWS account cleanup run."""

    region: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""

    @classmethod
    def from_env(cls) -> AWSConfig:
        return cls(
            region=os.environ.get("AWS_REGION", os.environ.get("AWS_DEFAULT_REGION", "")),
            access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", ""),
            secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", ""),
        )

    def with_overrides(self, **overrides: str | None) -> AWSConfig:
        """Return a copy with every non-empty override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v})

    def validate(self) -> None:
        if not self.region:
            raise InvalidConfigError("AWSConfig.region must not be empty")
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise InvalidConfigError(
                "AWSConfig.access_key_id and AWSConfig.secret_access_key must be set together"
            )


@dataclass(frozen=True)
class AzureConfig:
    """Settings for one Azure subscription cleanup run."""

    subscription_id: str = ""
    location: str = ""
    client_id: str = ""
    client_secret: str = ""
    tenant_id: str = ""
    installations: tuple[str, ...] = field(
        default_factory=lambda: split_installations(DEFAULT_INSTALLATIONS)
    )
    delegate_dns_zone: str = ""

    @classmethod
    def from_env(cls) -> AzureConfig:
        return cls(
            subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""),
            location=os.environ.get("AZURE_LOCATION", ""),
            client_id=os.environ.get("AZURE_CLIENT_ID", ""),
            client_secret=os.environ.get("AZURE_CLIENT_SECRET", ""),
            tenant_id=os.environ.get("AZURE_TENANT_ID", ""),
            installations=split_installations(
                os.environ.get("CI_CLEANER_INSTALLATIONS", DEFAULT_INSTALLATIONS)
            ),
            delegate_dns_zone=os.environ.get("CI_CLEANER_DELEGATE_DNS_ZONE", ""),
        )

    def with_overrides(self, **overrides) -> AzureConfig:
        """Return a copy with every non-empty override applied.

        ``installations`` may be given as a comma separated string.
        """
        values = {k: v for k, v in overrides.items() if v}
        if isinstance(values.get("installations"), str):
            values["installations"] = split_installations(values["installations"])
        return replace(self, **values)

    def validate(self) -> None:
        if not self.subscription_id:
            raise InvalidConfigError("AzureConfig.subscription_id must not be empty")
        if not self.location:
            raise InvalidConfigError("AzureConfig.location must not be empty")
        if not self.installations:
            raise InvalidConfigError("AzureConfig.installations must not be empty")
        if any(not i for i in self.installations):
            raise InvalidConfigError(
                "AzureConfig.installations must contain non empty items"
            )
        if self.client_secret and not (self.client_id and self.tenant_id):
            raise InvalidConfigError(
                "AzureConfig.client_id and AzureConfig.tenant_id are required with a client secret"
            )

    def zone_name(self, installation: str) -> str:
        return DNS_ZONE_NAME_FORMAT.format(
            installation=installation, location=self.location
        )
