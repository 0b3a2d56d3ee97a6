"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Negative amount, missing timestamp or an inverted time range"""

    pass


class NotFoundError(DomainException):
    """No snapshot exists at or before the requested instant"""

    pass


class StorageError(DomainException):
    """Ledger or snapshot store failed to read or write"""

    pass


class UnexpectedTypeError(DomainException):
    """Internal invariant violated"""

    pass
