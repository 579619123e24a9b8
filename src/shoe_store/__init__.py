"""
Shoe Store - a shoe list synced to a document store

Features:
- Anonymous per-session sign-in
- Add, list, delete and clear shoes kept in a per-user collection
- Shoe details from an enrichment service backed by Claude
- History of past detail lookups
- CLI shell and details server
"""

__version__ = "0.1.0"

from .errors import (
    ShoeStoreError,
    AuthenticationError,
    LoadError,
    WriteError,
    ValidationError,
    EnrichmentError,
)
from .models import Shoe, PastView
from .store import DocumentStore, MemoryDocumentStore, JsonDocumentStore
from .identity import IdentityProvider, AnonymousIdentityProvider
from .enrichment import EnrichmentClient
from .sync import ShoeSync, SessionState

__all__ = [
    "ShoeStoreError",
    "AuthenticationError",
    "LoadError",
    "WriteError",
    "ValidationError",
    "EnrichmentError",
    "Shoe",
    "PastView",
    "DocumentStore",
    "MemoryDocumentStore",
    "JsonDocumentStore",
    "IdentityProvider",
    "AnonymousIdentityProvider",
    "EnrichmentClient",
    "ShoeSync",
    "SessionState",
]
