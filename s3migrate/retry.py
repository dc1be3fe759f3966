"""Retry loop with exponential backoff around single-object copies."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    stop_when_event_set,
    wait_exponential,
)

from .config import DEFAULT_INITIAL_BACKOFF, DEFAULT_MAX_BACKOFF
from .exceptions import MigrationCancelledError, ObjectTransferError
from .models import ObjectRecord
from .transfer import ObjectCopier

logger = logging.getLogger(__name__)


class RetryingExecutor:
    """Runs an ``ObjectCopier`` until the copy succeeds.

    With ``max_attempts`` left as ``None`` an object is never given up on.
    Setting ``max_attempts`` bounds the loop and raises ``ObjectTransferError``
    once it is exhausted. ``cancel()`` wakes every sleeping worker and makes
    it raise ``MigrationCancelledError`` instead of trying again.
    """

    def __init__(
        self,
        copier: ObjectCopier,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._copier = copier
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._max_attempts = max_attempts
        self._sleep = sleep or self._wait
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop retrying in every worker using this executor."""
        self._cancelled.set()

    def _wait(self, seconds: float) -> None:
        if self._cancelled.wait(seconds):
            raise MigrationCancelledError("Migration cancelled while waiting to retry")

    def _retrying(self, record: ObjectRecord) -> Retrying:
        # A fresh controller per object keeps attempt counts and statistics per worker.
        stop = stop_never if self._max_attempts is None else stop_after_attempt(self._max_attempts)
        return Retrying(
            retry=retry_if_exception_type(Exception),
            wait=wait_exponential(multiplier=self._initial_backoff, max=self._max_backoff),
            stop=stop | stop_when_event_set(self._cancelled),
            before_sleep=lambda state: self._log_failure(record, state),
            sleep=self._sleep,
            reraise=True,
        )

    def _log_failure(self, record: ObjectRecord, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0
        logger.warning(
            "Got an error copying %s (attempt %d): %s. Trying again in %g seconds...",
            record.key,
            state.attempt_number,
            exc,
            delay,
            exc_info=exc,
        )

    def run(self, record: ObjectRecord) -> int:
        """Copy ``record``, sleeping and retrying after every failure.

        Returns:
            The number of bytes copied.

        Raises:
            ObjectTransferError: Only when ``max_attempts`` is set and every attempt failed.
            MigrationCancelledError: If ``cancel()`` was called before the copy succeeded.
        """
        if self.cancelled:
            raise MigrationCancelledError(f"Migration cancelled before copying '{record.key}'")
        retrying = self._retrying(record)
        try:
            return retrying(self._copier.copy, record)
        except MigrationCancelledError:
            raise
        except Exception as exc:
            if self.cancelled:
                raise MigrationCancelledError(f"Migration cancelled while copying '{record.key}'") from exc
            attempts = retrying.statistics.get("attempt_number", self._max_attempts or 1)
            raise ObjectTransferError(record.key, str(exc), attempts=attempts) from exc
