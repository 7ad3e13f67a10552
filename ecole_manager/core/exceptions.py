from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for store and service layer errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SchemaInitError(ServiceError):
    """The schema could not be provisioned. Fatal; the store is unusable."""


class DuplicateKeyError(ServiceError):
    """A create hit an existing primary key or unique constraint."""


class ConstraintViolationError(ServiceError):
    """A CHECK or FOREIGN KEY constraint rejected the write."""


class LegacyStoreError(ServiceError):
    """The legacy key-value store could not be read."""


class MigrationError(ServiceError):
    """Category-level migration failure. ``report`` holds what ran before the abort."""

    def __init__(self, message: str, report: Optional[Any] = None) -> None:
        super().__init__(message)
        self.report = report
