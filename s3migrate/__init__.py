"""Copy every object of one S3-compatible bucket into another."""

from .migrator import BucketMigrator, MigrationResult
from .models import AccessLevel, MigrationJob, ObjectRecord, Page
from .progress import ProgressReporter
from .retry import RetryingExecutor
from .transfer import ObjectCopier

__all__ = [
    "AccessLevel",
    "BucketMigrator",
    "MigrationJob",
    "MigrationResult",
    "ObjectCopier",
    "ObjectRecord",
    "Page",
    "ProgressReporter",
    "RetryingExecutor",
]
