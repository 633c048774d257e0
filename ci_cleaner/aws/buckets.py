"""S3 bucket cleanup."""

from __future__ import annotations
import datetime

from aws_lambda_powertools import Logger

from ..base import CleanerReport, ResourceCleaner
from ..errors import InvalidConfigError, ResourceOperationError, is_not_found
from ..models.config import S3_DELETE_BATCH_SIZE
from ..policies import bucket_should_be_deleted
from .clients import ObjectStorageClient


class BucketCleaner(ResourceCleaner):
    """Empties and deletes old CI buckets."""

    name = "buckets"
    resource_kind = "bucket"

    def __init__(
        self,
        storage_client: ObjectStorageClient,
        logger: Logger,
        batch_size: int = S3_DELETE_BATCH_SIZE,
    ):
        if storage_client is None:
            raise InvalidConfigError("BucketCleaner.storage_client must not be empty")
        if not 0 < batch_size <= S3_DELETE_BATCH_SIZE:
            raise InvalidConfigError(
                f"BucketCleaner.batch_size must be between 1 and {S3_DELETE_BATCH_SIZE}"
            )
        super().__init__(logger)
        self.storage_client = storage_client
        self.batch_size = batch_size

    def clean(self, now: datetime.datetime) -> CleanerReport:
        report = CleanerReport()

        for bucket in self._iterate_listing(report, self.storage_client.list_buckets, "buckets"):
            if not bucket_should_be_deleted(bucket, now):
                continue

            self.logger.debug(
                f"found that bucket {bucket.name!r} should be deleted",
                extra={"resource_name": bucket.name},
            )
            try:
                self.delete_bucket(bucket.name)
            except Exception as e:
                if is_not_found(e):
                    self.logger.info(f"bucket {bucket.name!r} already gone")
                    continue
                self._record_failure(
                    report,
                    ResourceOperationError(self.resource_kind, bucket.name, "delete", e),
                    f"failed deleting bucket {bucket.name!r}",
                    resource_name=bucket.name,
                )
                continue

            self._record_deletion(report, bucket.name, "CI bucket past grace period")

        return report

    def delete_bucket(self, bucket: str) -> int:
        """Drain all objects of the bucket, then delete it.

        Returns the number of deleted objects.
        """
        deleted = 0
        token: str | None = None
        while True:
            page = self.storage_client.list_objects(bucket, token)

            keys = list(page.keys)
            for start in range(0, len(keys), self.batch_size):
                self.storage_client.delete_objects_batch(
                    bucket, keys[start : start + self.batch_size]
                )
            deleted += len(keys)

            if not page.is_truncated:
                break
            token = page.next_token

        if deleted:
            self.logger.debug(
                f"deleted {deleted} objects from bucket {bucket!r}",
                extra={"resource_name": bucket, "object_count": deleted},
            )

        self.storage_client.delete_bucket(bucket)
        return deleted
