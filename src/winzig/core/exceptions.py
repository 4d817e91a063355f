"""Custom exceptions for winzig."""


class WinzigError(Exception):
    """Base exception for all winzig errors."""

    pass


class DatabaseError(WinzigError):
    """Storage engine operation failed."""

    pass


class MigrationError(DatabaseError):
    """Schema creation or upgrade failed."""

    def __init__(self, message: str, version: int | None = None, resource_name: str | None = None):
        """Initialize exception with the failing step.

        Args:
            message: Human readable description.
            version: Schema version the failing step would have produced.
            resource_name: Name of the script resource involved.
        """
        self.version = version
        self.resource_name = resource_name
        super().__init__(message)


class InvalidAddressError(WinzigError, ValueError):
    """Resource address is malformed or not valid for the operation."""

    pass


class InvalidFieldValueError(WinzigError, ValueError):
    """Value is not acceptable for a field."""

    pass


class CardinalityError(WinzigError):
    """A point operation did not touch exactly one row."""

    def __init__(self, message: str, expected: int = 1, actual: int | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class EntityStateError(WinzigError):
    """Entity is not in a state that allows the operation."""

    pass
