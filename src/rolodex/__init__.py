"""
Rolodex core: clean-architecture layout.

- domain: entities (Contact, SearchFilters, ContactStats). No outer dependencies.
- application: use cases (ContactSession, IncrementalLoader, QueryEngine, merge), ports.
- infrastructure: adapters (key-value stores, contact providers, phone parsing).
"""

from rolodex.application import (
    ContactProvider,
    ContactSession,
    KeyValueStore,
    PermissionDenied,
    RetrievalFailure,
    RolodexError,
)
from rolodex.domain import (
    Contact,
    ContactInsights,
    ContactSource,
    ContactStats,
    SearchFilters,
)
from rolodex.infrastructure import (
    InMemoryKeyValueStore,
    JsonFileContactProvider,
    JsonFileKeyValueStore,
    StaticContactProvider,
)

__all__ = [
    "Contact",
    "ContactInsights",
    "ContactProvider",
    "ContactSession",
    "ContactSource",
    "ContactStats",
    "InMemoryKeyValueStore",
    "JsonFileContactProvider",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "PermissionDenied",
    "RetrievalFailure",
    "RolodexError",
    "SearchFilters",
    "StaticContactProvider",
]
