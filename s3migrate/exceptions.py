"""Exception hierarchy for s3migrate."""


class S3MigrateError(Exception):
    """Base exception for all s3migrate errors."""


class ConfigurationError(S3MigrateError):
    """Raised when configuration or an endpoint is missing or invalid."""


class ListingError(S3MigrateError):
    """Raised when the source bucket cannot be listed.

    Listing failures are not retried; they end the migration.
    """


class ObjectTransferError(S3MigrateError):
    """Raised when an individual object could not be copied within the allowed attempts.

    Attributes:
        key: The object key that failed to transfer.
        attempts: How many attempts were made before giving up.
    """

    def __init__(self, key: str, message: str, attempts: int = 1) -> None:
        self.key = key
        self.attempts = attempts
        super().__init__(f"Failed to transfer '{key}' after {attempts} attempt(s): {message}")


class MigrationCancelledError(S3MigrateError):
    """Raised inside workers once the migration has been told to stop."""
