"""Page-by-page walk over a bucket listing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

from .config import DEFAULT_PAGE_SIZE
from .exceptions import ListingError
from .models import Page

if TYPE_CHECKING:
    from .connection import S3Connection

logger = logging.getLogger(__name__)


class BucketEnumerator:
    """Walks every object of a bucket one page at a time.

    Objects written or deleted by someone else while the walk is in progress
    may or may not show up; no snapshot is taken.
    """

    def __init__(self, connection: S3Connection, bucket: str, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._connection = connection
        self._bucket = bucket
        self._page_size = page_size

    def list_page(self, after_marker: str | None = None) -> Page:
        """Fetch the page that follows ``after_marker`` (the first page when omitted).

        Raises:
            ListingError: If the store rejects or fails the listing call.
        """
        try:
            page = self._connection.list_page(self._bucket, marker=after_marker, page_size=self._page_size)
        except Exception as exc:
            raise ListingError(f"Failed to list bucket '{self._bucket}': {exc}") from exc
        logger.debug(
            "Listed %d object(s) from %s after marker %r", len(page), self._bucket, after_marker
        )
        return page

    def pages(self) -> Iterator[Page]:
        page = self.list_page()
        yield page
        while not page.is_last:
            page = self.list_page(after_marker=page.next_marker)
            yield page

    __iter__ = pages
