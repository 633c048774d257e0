"""DNS record set cleanup.

Two kinds of leftovers exist:

* NS record sets ``<group>.k8s`` in every installation zone, delegating a
  tenant cluster zone. They are orphaned once the CI resource group of the
  same name is gone.
* NS record sets ``e2eterraform*`` in the root delegated zone, left by the
  terraform E2E tests. They are stale once the API name of the delegated
  zone no longer resolves.
"""

from __future__ import annotations
import datetime
import socket
import threading
from functools import partial
from typing import Callable, Iterable, Sequence

from aws_lambda_powertools import Logger

from ..base import CleanerReport, ResourceCleaner
from ..errors import (
    CleanupCancelledError,
    InvalidConfigError,
    ResourceOperationError,
    is_not_found,
)
from ..models import DNSRecordSet
from ..models.config import (
    DELEGATE_DNS_RECORD_PREFIX,
    DNS_ZONE_NAME_FORMAT,
    RECORD_SET_NAME_SUFFIX,
    ROOT_DNS_RESOURCE_GROUP,
)
from .clients import DNSClient, ResourceGroupClient
from .orphans import OrphanedResourceCleaner

# getaddrinfo errors meaning the name does not exist
_NAME_NOT_FOUND_ERRORS = {
    getattr(socket, name) for name in ("EAI_NONAME", "EAI_NODATA") if hasattr(socket, name)
}


class DNSRecordSetCleaner(OrphanedResourceCleaner):
    """Deletes installation zone record sets whose CI resource group is gone."""

    name = "dns_record_sets"
    resource_kind = "dns_record_set"

    def __init__(
        self,
        dns_client: DNSClient,
        group_client: ResourceGroupClient,
        installations: Sequence[str],
        location: str,
        logger: Logger,
        cancel_event: threading.Event | None = None,
    ):
        if dns_client is None:
            raise InvalidConfigError("DNSRecordSetCleaner.dns_client must not be empty")
        if not location:
            raise InvalidConfigError("DNSRecordSetCleaner.location must not be empty")
        super().__init__(group_client, installations, logger, cancel_event)
        self.dns_client = dns_client
        self.location = location

    def zone_name(self, installation: str) -> str:
        return DNS_ZONE_NAME_FORMAT.format(installation=installation, location=self.location)

    def list_resources(self, installation: str) -> Iterable[DNSRecordSet]:
        return self.dns_client.list_record_sets(
            installation, self.zone_name(installation), RECORD_SET_NAME_SUFFIX
        )

    def group_name_of(self, resource: DNSRecordSet) -> str:
        return resource.name.removesuffix(RECORD_SET_NAME_SUFFIX)

    def delete_resource(self, installation: str, resource: DNSRecordSet) -> None:
        self.dns_client.delete_record_set(
            installation, self.zone_name(installation), resource.name
        )


def resolves(host: str) -> bool:
    """Check whether ``host`` resolves to at least one address.

    Raises ``socket.gaierror`` for resolution failures other than a
    missing name.
    """
    try:
        return bool(socket.getaddrinfo(host, None))
    except socket.gaierror as e:
        if e.errno in _NAME_NOT_FOUND_ERRORS:
            return False
        raise


class DelegateDNSRecordCleaner(ResourceCleaner):
    """Deletes root zone delegations of terraform E2E clusters that are gone."""

    name = "delegate_dns_records"
    resource_kind = "delegate_dns_record"

    def __init__(
        self,
        dns_client: DNSClient,
        zone: str,
        logger: Logger,
        cancel_event: threading.Event | None = None,
        resolver: Callable[[str], bool] = resolves,
        resource_group: str = ROOT_DNS_RESOURCE_GROUP,
    ):
        if dns_client is None:
            raise InvalidConfigError("DelegateDNSRecordCleaner.dns_client must not be empty")
        if not zone:
            raise InvalidConfigError("DelegateDNSRecordCleaner.zone must not be empty")
        super().__init__(logger, cancel_event)
        self.dns_client = dns_client
        self.zone = zone
        self.resolver = resolver
        self.resource_group = resource_group

    def clean(self, now: datetime.datetime) -> CleanerReport:
        report = CleanerReport()

        records = self._iterate_listing(
            report,
            partial(self.dns_client.list_record_sets, self.resource_group, self.zone),
            f"record sets of {self.zone}",
        )
        for record in records:
            if not record.name.startswith(DELEGATE_DNS_RECORD_PREFIX):
                continue

            host = f"api.{record.name}.{self.zone}"
            try:
                alive = self.resolver(host)
            except OSError as e:
                self.logger.warning(
                    f"unexpected error when trying to resolve {host}, keeping record",
                    extra={"resource_name": record.name, "error": str(e)},
                )
                continue

            if alive:
                self.logger.debug(f"DNS record {record.name!r} has to be kept")
                continue

            self.logger.info(f"DNS record {record.name!r} has to be deleted")
            self._checkpoint()
            try:
                self.dns_client.delete_record_set(
                    self.resource_group, self.zone, record.name, record.etag
                )
            except CleanupCancelledError:
                raise
            except Exception as e:
                if is_not_found(e):
                    continue
                self._record_failure(
                    report,
                    ResourceOperationError(self.resource_kind, record.name, "delete", e),
                    f"failed to delete DNS record {record.name!r}",
                    resource_name=record.name,
                )
                continue

            self._record_deletion(
                report, record.name, f"{host} no longer resolves", location=self.zone
            )

        return report
