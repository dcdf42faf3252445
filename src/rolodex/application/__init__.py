"""Application layer: loader, merge, query, stats, the session service, and ports. Depends only on domain."""

from rolodex.application.contact_session import ContactSession
from rolodex.application.errors import PermissionDenied, RetrievalFailure, RolodexError
from rolodex.application.loader import IncrementalLoader
from rolodex.application.merge import merge_contacts
from rolodex.application.normalizer import classify_source, normalize_contact
from rolodex.application.ports import ContactProvider, KeyValueStore
from rolodex.application.query import QueryEngine, SearchIndex
from rolodex.application.stats import compute_insights, compute_stats
from rolodex.application.store import AggregateStore

__all__ = [
    "AggregateStore",
    "ContactProvider",
    "ContactSession",
    "IncrementalLoader",
    "KeyValueStore",
    "PermissionDenied",
    "QueryEngine",
    "RetrievalFailure",
    "RolodexError",
    "SearchIndex",
    "classify_source",
    "compute_insights",
    "compute_stats",
    "merge_contacts",
    "normalize_contact",
]
