"""Domain layer: entities and value objects. No dependencies on outer layers."""

from rolodex.domain.entities import (
    ALL_SOURCES,
    NO_NAME,
    SOURCE_TYPES,
    UNKNOWN_DATE,
    Address,
    Contact,
    ContactInsights,
    ContactSource,
    ContactStats,
    Email,
    PhoneNumber,
    SearchFilters,
    SourceType,
)
from rolodex.domain.raw import RawContact

__all__ = [
    "ALL_SOURCES",
    "NO_NAME",
    "SOURCE_TYPES",
    "UNKNOWN_DATE",
    "Address",
    "Contact",
    "ContactInsights",
    "ContactSource",
    "ContactStats",
    "Email",
    "PhoneNumber",
    "RawContact",
    "SearchFilters",
    "SourceType",
]
