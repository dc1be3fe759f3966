"""Shared fixtures for s3migrate tests."""

from __future__ import annotations

import io
import json
import threading
import time
from dataclasses import dataclass, field

import boto3
import pytest
from moto import mock_aws

from s3migrate.connection import S3Connection
from s3migrate.models import AccessLevel, FetchedObject, MigrationJob, ObjectRecord, Page

SOURCE_BUCKET = "s3migrate-source"
DESTINATION_BUCKET = "s3migrate-destination"
REGION = "eu-west-1"


@pytest.fixture
def env_vars(monkeypatch, tmp_path):
    """Set the s3migrate variables plus fake AWS credentials for moto."""
    env = {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_DEFAULT_REGION": REGION,
        "S3MIGRATE_CREDENTIALS_FILE": str(tmp_path / "credentials.json"),
    }
    for name in (
        "S3MIGRATE_PAGE_SIZE",
        "S3MIGRATE_MAX_WORKERS",
        "S3MIGRATE_INITIAL_BACKOFF",
        "S3MIGRATE_MAX_BACKOFF",
        "S3MIGRATE_MAX_ATTEMPTS",
        "S3MIGRATE_REGION",
    ):
        monkeypatch.delenv(name, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture
def aws_mocks(env_vars):
    """Start moto mocks for S3."""
    with mock_aws():
        yield


@pytest.fixture
def s3_client(aws_mocks):
    """Create a mocked S3 client."""
    return boto3.client("s3", region_name=REGION)


@pytest.fixture
def source_bucket(s3_client):
    s3_client.create_bucket(
        Bucket=SOURCE_BUCKET,
        CreateBucketConfiguration={"LocationConstraint": REGION},
    )
    return SOURCE_BUCKET


@pytest.fixture
def destination_bucket(s3_client):
    s3_client.create_bucket(
        Bucket=DESTINATION_BUCKET,
        CreateBucketConfiguration={"LocationConstraint": REGION},
    )
    return DESTINATION_BUCKET


@pytest.fixture
def connection(s3_client):
    return S3Connection(s3_client)


@pytest.fixture
def job(connection, source_bucket, destination_bucket):
    """A job copying between two buckets of the same mocked endpoint."""
    return MigrationJob(
        source=connection,
        destination=connection,
        source_bucket=source_bucket,
        destination_bucket=destination_bucket,
    )


@pytest.fixture
def sample_objects(s3_client, source_bucket):
    """Upload objects with varied metadata, storage classes and ACLs to the source bucket."""
    objects = {
        "data/file1.csv": {
            "Body": b"col1,col2\nval1,val2\n",
            "ContentType": "text/csv",
            "Metadata": {"owner": "analytics"},
        },
        "data/file2.json": {
            "Body": json.dumps({"key": "value"}).encode(),
            "ContentType": "application/json",
            "StorageClass": "STANDARD_IA",
        },
        "data/nested/file3.txt": {
            "Body": b"hello world",
            "ContentType": "text/plain",
            "ACL": "public-read",
            "Metadata": {"origin": "camera", "rev": "3"},
        },
    }
    for key, params in objects.items():
        s3_client.put_object(Bucket=SOURCE_BUCKET, Key=key, **params)
    return objects


@dataclass
class StoredObject:
    body: bytes
    tier: str = "STANDARD"
    content_type: str = "application/octet-stream"
    metadata: dict = field(default_factory=dict)
    access: AccessLevel = AccessLevel.PRIVATE


class InMemoryConnection:
    """Connection double keeping buckets in dictionaries, with injectable failures.

    ``failures[key]`` is the number of upcoming ``get_object`` calls for that
    key that raise before one succeeds. ``read_delay`` holds every read open
    for that many seconds; ``peak_reads`` records how many overlapped.
    """

    def __init__(self, read_delay: float = 0.0) -> None:
        self.buckets: dict[str, dict[str, StoredObject]] = {}
        self.failures: dict[str, int] = {}
        self.list_calls: list[str | None] = []
        self.puts: list[str] = []
        self.read_delay = read_delay
        self.active_reads = 0
        self.peak_reads = 0
        self._lock = threading.Lock()

    def add(self, bucket: str, key: str, body: bytes = b"payload", **attrs) -> None:
        self.buckets.setdefault(bucket, {})[key] = StoredObject(body=body, **attrs)

    def list_page(self, bucket: str, marker: str | None = None, page_size: int = 32) -> Page:
        self.list_calls.append(marker)
        keys = sorted(self.buckets.get(bucket, {}))
        if marker is not None:
            keys = [key for key in keys if key > marker]
        chunk = keys[:page_size]
        records = tuple(
            ObjectRecord(key=key, tier=self.buckets[bucket][key].tier, size=len(self.buckets[bucket][key].body))
            for key in chunk
        )
        next_marker = chunk[-1] if len(keys) > page_size else None
        return Page(records=records, next_marker=next_marker)

    def get_access_level(self, bucket: str, key: str) -> AccessLevel:
        return self.buckets[bucket][key].access

    def get_object(self, bucket: str, key: str) -> FetchedObject:
        with self._lock:
            remaining = self.failures.get(key, 0)
            if remaining:
                self.failures[key] = remaining - 1
                raise ConnectionError(f"simulated failure reading {key}")
            self.active_reads += 1
            self.peak_reads = max(self.peak_reads, self.active_reads)
        try:
            if self.read_delay:
                time.sleep(self.read_delay)
        finally:
            with self._lock:
                self.active_reads -= 1
        stored = self.buckets[bucket][key]
        return FetchedObject(
            body=io.BytesIO(stored.body),
            content_type=stored.content_type,
            metadata=dict(stored.metadata),
            content_length=len(stored.body),
        )

    def put_object(self, bucket, key, body, *, metadata, tier, content_type, access) -> None:
        with self._lock:
            self.buckets.setdefault(bucket, {})[key] = StoredObject(
                body=body.read(),
                tier=tier,
                content_type=content_type,
                metadata=dict(metadata),
                access=access,
            )
            self.puts.append(key)


@pytest.fixture
def memory_connection():
    return InMemoryConnection()


@pytest.fixture
def memory_job(memory_connection):
    return MigrationJob(
        source=memory_connection,
        destination=memory_connection,
        source_bucket=SOURCE_BUCKET,
        destination_bucket=DESTINATION_BUCKET,
    )
