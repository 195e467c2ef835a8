class PolystoreError(Exception):
    """Base class for exceptions in this module."""


class ValidationError(PolystoreError, ValueError):
    """Raised when a record or resource is constructed with invalid fields."""


class NotFoundError(PolystoreError, LookupError):
    """Raised when a record or resource is not found in a store."""


class StoreIOError(PolystoreError, OSError):
    """Raised when a store cannot be read from or written to."""


class ParseError(PolystoreError, ValueError):
    """Raised when a persisted line cannot be parsed."""

    def __init__(self, message: str, lineno: int | None = None):
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)
        self.lineno = lineno
