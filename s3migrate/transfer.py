"""Single-object copy between two buckets."""

from __future__ import annotations

import logging

from .models import MigrationJob, ObjectRecord

logger = logging.getLogger(__name__)


class ObjectCopier:
    """Copies one object from the source bucket to the destination bucket.

    The destination object gets the source's storage class, content type,
    user metadata and ACL. Whatever already exists at the same key in the
    destination is overwritten. Failures are raised unchanged; retrying is
    left to the caller.
    """

    def __init__(self, job: MigrationJob) -> None:
        self._job = job

    def copy(self, record: ObjectRecord) -> int:
        """Stream a single object from source to destination.

        Args:
            record: The listed object to copy.

        Returns:
            The size in bytes reported by the source.
        """
        job = self._job
        access = job.source.get_access_level(job.source_bucket, record.key)
        fetched = job.source.get_object(job.source_bucket, record.key)

        try:
            job.destination.put_object(
                job.destination_bucket,
                record.key,
                fetched.body,
                metadata=fetched.metadata,
                tier=record.tier,
                content_type=fetched.content_type,
                access=access,
            )
        finally:
            fetched.body.close()

        logger.debug("Copied: %s (%d bytes, %s, %s)", record.key, fetched.content_length, record.tier, access.value)
        return fetched.content_length
