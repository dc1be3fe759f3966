"""Bucket-to-bucket migration driver."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from .config import DEFAULT_PAGE_SIZE, default_max_workers
from .enumerator import BucketEnumerator
from .exceptions import ObjectTransferError
from .models import MigrationJob, ObjectRecord, Page
from .progress import ProgressReporter
from .retry import RetryingExecutor
from .transfer import ObjectCopier

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Summary of a migration run."""

    copied: int = 0
    failed: list[ObjectTransferError] = field(default_factory=list)
    pages: int = 0
    bytes_copied: int = 0
    duration_seconds: float = 0.0


class BucketMigrator:
    """Copies every object of the source bucket into the destination bucket.

    Pages are processed one after another. Every object of a page is handed
    to a bounded thread pool and the page must finish before the next one is
    listed, so at most ``page_size`` objects are in flight at a time.
    """

    def __init__(
        self,
        job: MigrationJob,
        reporter: ProgressReporter | None = None,
        executor: RetryingExecutor | None = None,
        max_workers: int | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._job = job
        self._reporter = reporter or ProgressReporter()
        self._executor = executor or RetryingExecutor(ObjectCopier(job))
        self._max_workers = max_workers or default_max_workers()
        self._enumerator = BucketEnumerator(job.source, job.source_bucket, page_size)

    @property
    def reporter(self) -> ProgressReporter:
        return self._reporter

    def run(self) -> MigrationResult:
        """Run the whole migration.

        Returns:
            MigrationResult with the number of copied objects and any objects
            given up on (only possible when retries are bounded).

        Raises:
            ListingError: If the source bucket cannot be listed.
        """
        start = time.monotonic()
        result = MigrationResult()

        self._reporter.start("Collecting files")
        try:
            page = self._enumerator.list_page()
        finally:
            self._reporter.stop()

        self._reporter.start("Copying files")
        self._reporter.reset(0)
        pool = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="s3migrate")
        try:
            while True:
                self._copy_page(pool, page, result)
                if page.is_last:
                    break
                page = self._enumerator.list_page(after_marker=page.next_marker)
        except BaseException:
            # Wake sleeping workers and drop queued objects so Ctrl-C ends the run promptly.
            self._executor.cancel()
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        else:
            pool.shutdown(wait=True)
        finally:
            self._reporter.stop()

        result.duration_seconds = round(time.monotonic() - start, 2)
        logger.info(
            "Migration complete: %d copied, %d failed, %d page(s), %d bytes in %.2fs",
            result.copied,
            len(result.failed),
            result.pages,
            result.bytes_copied,
            result.duration_seconds,
        )
        return result

    def _copy_page(self, pool: ThreadPoolExecutor, page: Page, result: MigrationResult) -> None:
        futures = {pool.submit(self._migrate_object, record): record for record in page.records}
        for future in as_completed(futures):
            try:
                result.bytes_copied += future.result()
                result.copied += 1
            except ObjectTransferError as error:
                result.failed.append(error)
                logger.error("Giving up on object: %s", error)
        result.pages += 1

    def _migrate_object(self, record: ObjectRecord) -> int:
        size = self._executor.run(record)
        self._reporter.increment()
        return size
