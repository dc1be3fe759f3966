"""Environment-based configuration for s3migrate."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigurationError

DEFAULT_PAGE_SIZE = 32
DEFAULT_INITIAL_BACKOFF = 5
DEFAULT_MAX_BACKOFF = 60
DEFAULT_CREDENTIALS_PATH = Path("~/.config/s3migrate/credentials.json").expanduser()


def default_max_workers() -> int:
    """Worker pool width used when none is configured."""
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass(frozen=True)
class Config:
    """Immutable migration settings loaded from environment variables."""

    page_size: int = DEFAULT_PAGE_SIZE
    max_workers: int = field(default_factory=default_max_workers)
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF
    max_backoff: float = DEFAULT_MAX_BACKOFF
    max_attempts: int | None = None
    credentials_path: Path = DEFAULT_CREDENTIALS_PATH
    region: str | None = None

    def __post_init__(self) -> None:
        if self.max_backoff < self.initial_backoff:
            raise ConfigurationError(
                f"Maximum backoff ({self.max_backoff}) is smaller than initial backoff "
                f"({self.initial_backoff})"
            )

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Every variable is optional. ``S3MIGRATE_MAX_ATTEMPTS`` unset or ``0``
        means objects are retried until they succeed.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """

        def _int(name: str, default: int, minimum: int = 1) -> int:
            raw = os.environ.get(name, "").strip()
            if not raw:
                return default
            try:
                value = int(raw)
            except ValueError:
                raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
            if value < minimum:
                raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")
            return value

        credentials_path = os.environ.get("S3MIGRATE_CREDENTIALS_FILE")
        return cls(
            page_size=_int("S3MIGRATE_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            max_workers=_int("S3MIGRATE_MAX_WORKERS", default_max_workers()),
            initial_backoff=_int("S3MIGRATE_INITIAL_BACKOFF", DEFAULT_INITIAL_BACKOFF),
            max_backoff=_int("S3MIGRATE_MAX_BACKOFF", DEFAULT_MAX_BACKOFF),
            max_attempts=_int("S3MIGRATE_MAX_ATTEMPTS", 0, minimum=0) or None,
            credentials_path=(
                Path(credentials_path).expanduser() if credentials_path else DEFAULT_CREDENTIALS_PATH
            ),
            region=os.environ.get("S3MIGRATE_REGION") or None,
        )
