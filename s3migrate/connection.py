"""boto3-backed access to one S3-compatible endpoint."""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING, Mapping

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config as BotoConfig

from .models import DEFAULT_TIER, AccessLevel, FetchedObject, ObjectRecord, Page

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

    from .credentials import Credentials

logger = logging.getLogger(__name__)

AWS_ENDPOINT_SUFFIX = "amazonaws.com"

MULTIPART_THRESHOLD = 64 * 1024 * 1024
MULTIPART_CHUNKSIZE = 16 * 1024 * 1024


class S3Connection:
    """List/get/put capability over a single endpoint.

    Clients are shared between worker threads; boto3 clients are thread-safe.
    """

    def __init__(self, client: S3Client, name: str = "s3") -> None:
        self._client = client
        self.name = name
        # Objects are already copied in parallel, one upload thread per object is enough.
        self._transfer_config = TransferConfig(
            multipart_threshold=MULTIPART_THRESHOLD,
            multipart_chunksize=MULTIPART_CHUNKSIZE,
            max_concurrency=1,
            use_threads=False,
        )

    @classmethod
    def create(
        cls,
        endpoint: str,
        credentials: Credentials,
        name: str = "s3",
        region: str | None = None,
    ) -> S3Connection:
        """Build a connection for ``endpoint`` authenticated with ``credentials``."""
        kwargs = {}
        if not endpoint.endswith(AWS_ENDPOINT_SUFFIX):
            kwargs["endpoint_url"] = endpoint
        client = boto3.client(
            "s3",
            aws_access_key_id=credentials.access_id,
            aws_secret_access_key=credentials.access_key,
            region_name=region,
            config=BotoConfig(retries={"max_attempts": 3, "mode": "standard"}),
            **kwargs,
        )
        logger.debug("Created %s connection to %s", name, endpoint)
        return cls(client, name=name)

    def list_page(self, bucket: str, marker: str | None = None, page_size: int = 32) -> Page:
        """List up to ``page_size`` objects after ``marker``, across all prefixes.

        ``marker`` and the returned ``Page.next_marker`` are botocore
        pagination tokens; treat them as opaque.
        """
        paginator = self._client.get_paginator("list_objects")
        result = paginator.paginate(
            Bucket=bucket,
            PaginationConfig={"MaxItems": page_size, "PageSize": page_size, "StartingToken": marker},
        ).build_full_result()

        records = tuple(
            ObjectRecord(
                key=obj["Key"],
                tier=obj.get("StorageClass") or DEFAULT_TIER,
                size=obj.get("Size", 0),
            )
            for obj in result.get("Contents", [])
        )
        return Page(records=records, next_marker=result.get("NextToken"))

    def get_access_level(self, bucket: str, key: str) -> AccessLevel:
        response = self._client.get_object_acl(Bucket=bucket, Key=key)
        return AccessLevel.from_grants(response.get("Grants", []))

    def get_object(self, bucket: str, key: str) -> FetchedObject:
        """Open a streamed read of an object along with its metadata."""
        response = self._client.get_object(Bucket=bucket, Key=key)
        return FetchedObject(
            body=response["Body"],
            content_type=response.get("ContentType") or "application/octet-stream",
            metadata=dict(response.get("Metadata") or {}),
            content_length=response.get("ContentLength", 0),
        )

    def put_object(
        self,
        bucket: str,
        key: str,
        body: IO[bytes],
        *,
        metadata: Mapping[str, str],
        tier: str,
        content_type: str,
        access: AccessLevel,
    ) -> None:
        """Write ``body`` to ``key``, replacing whatever is stored there."""
        self._client.upload_fileobj(
            body,
            bucket,
            key,
            ExtraArgs={
                "ACL": access.value,
                "StorageClass": tier,
                "ContentType": content_type,
                "Metadata": dict(metadata),
            },
            Config=self._transfer_config,
        )
