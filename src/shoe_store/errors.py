"""
Error types raised by the shoe store.

Every failure that reaches a caller of ShoeSync is one of these, carrying a
message that can be shown to the user as-is.
"""


class ShoeStoreError(Exception):
    """Base class for user-facing errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(ShoeStoreError):
    """Anonymous sign-in failed, or an operation ran before sign-in."""


class LoadError(ShoeStoreError):
    """Reading shoes or past views from the store failed."""


class WriteError(ShoeStoreError):
    """Creating or deleting records in the store failed."""


class ValidationError(ShoeStoreError):
    """Caller-supplied input was rejected before touching the store."""


class EnrichmentError(ShoeStoreError):
    """The enrichment service returned an error or an unusable response."""


class StoreError(Exception):
    """Low-level document store failure. Converted by ShoeSync."""
