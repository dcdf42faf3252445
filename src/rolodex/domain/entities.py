"""Domain entities: Contact and its sub-records, plus the filter and stats value objects."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Literal

SourceType = Literal["device", "sim", "google", "exchange", "other"]
SortKey = Literal["name", "created_at", "modified_at"]
SortOrder = Literal["asc", "desc"]

SOURCE_TYPES: tuple[str, ...] = ("device", "sim", "google", "exchange", "other")
SORT_KEYS: tuple[str, ...] = ("name", "created_at", "modified_at")
SORT_ORDERS: tuple[str, ...] = ("asc", "desc")

# Stand-in for missing or unusable source timestamps. Never "now".
UNKNOWN_DATE = datetime(1980, 1, 1, tzinfo=timezone.utc)

NO_NAME = "No Name"

# Source filter value meaning "every source".
ALL_SOURCES = "all"


@dataclass(frozen=True)
class PhoneNumber:
    id: str
    number: str
    label: str = "mobile"
    is_primary: bool = False
    e164: str | None = None


@dataclass(frozen=True)
class Email:
    id: str
    email: str
    label: str = "personal"
    is_primary: bool = False


@dataclass(frozen=True)
class Address:
    id: str
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    label: str = "home"


@dataclass(frozen=True)
class ContactSource:
    """Where a contact came from on the device (local book, SIM, synced account)."""

    type: SourceType = "device"
    name: str = "Device"
    account_id: str | None = None


@dataclass(frozen=True)
class Contact:
    """
    A normalized contact record.
    Immutable; the favorite flag is an overlay owned by the store and applied
    with with_favorite(), which returns a copy.
    """

    id: str
    name: str = NO_NAME
    first_name: str | None = None
    last_name: str | None = None
    phone_numbers: tuple[PhoneNumber, ...] = ()
    emails: tuple[Email, ...] = ()
    addresses: tuple[Address, ...] = ()
    job_title: str | None = None
    company: str | None = None
    notes: str | None = None
    source: ContactSource = field(default_factory=ContactSource)
    image_uri: str | None = None
    created_at: datetime = UNKNOWN_DATE
    modified_at: datetime = UNKNOWN_DATE
    tags: tuple[str, ...] = ()
    is_favorite: bool = False

    @property
    def primary_phone(self) -> PhoneNumber | None:
        """Explicitly primary number, else the first one, else None."""
        for phone in self.phone_numbers:
            if phone.is_primary:
                return phone
        return self.phone_numbers[0] if self.phone_numbers else None

    @property
    def initials(self) -> str:
        parts = self.name.split()
        return "".join(part[0] for part in parts[:2]).upper()

    def with_favorite(self, is_favorite: bool) -> "Contact":
        if is_favorite == self.is_favorite:
            return self
        return replace(self, is_favorite=is_favorite)


@dataclass(frozen=True)
class SearchFilters:
    """Query, source, favorites-only and sort settings applied to the aggregate."""

    query: str = ""
    source: str | None = None
    sort_by: SortKey = "name"
    sort_order: SortOrder = "asc"
    show_favorites_only: bool = False

    def __post_init__(self):
        if self.sort_by not in SORT_KEYS:
            raise ValueError(f"sort_by must be one of {', '.join(SORT_KEYS)}.")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"sort_order must be one of {', '.join(SORT_ORDERS)}.")
        object.__setattr__(self, "query", self.query or "")
        object.__setattr__(self, "source", self.source or None)

    @property
    def keywords(self) -> list[str]:
        """Case-folded, whitespace-separated query terms (empty tokens dropped)."""
        return self.query.casefold().split()

    @property
    def source_type(self) -> str | None:
        """Source to filter on, or None when every source is wanted."""
        if self.source is None or self.source == ALL_SOURCES:
            return None
        return self.source

    def merged(self, **changes: Any) -> "SearchFilters":
        unknown = set(changes) - set(self.to_dict())
        if unknown:
            raise ValueError(f"Unknown filter field(s): {', '.join(sorted(unknown))}.")
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "source": self.source,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
            "show_favorites_only": self.show_favorites_only,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default: "SearchFilters | None" = None) -> "SearchFilters":
        """Build filters from stored data. Accepts camelCase keys; missing keys use default."""
        base = default or cls()
        aliases = {
            "sortBy": "sort_by",
            "sortOrder": "sort_order",
            "showFavoritesOnly": "show_favorites_only",
        }
        values = base.to_dict()
        for key, value in data.items():
            key = aliases.get(key, key)
            if key in values:
                values[key] = value
        # Stored sort keys from the mobile app are camelCase too.
        values["sort_by"] = {"createdAt": "created_at", "modifiedAt": "modified_at"}.get(
            values["sort_by"], values["sort_by"]
        )
        values["query"] = str(values["query"] or "")
        values["show_favorites_only"] = bool(values["show_favorites_only"])
        return cls(**values)


@dataclass(frozen=True)
class ContactStats:
    total: int = 0
    by_source: dict[str, int] = field(default_factory=dict)
    favorites: int = 0
    with_photos: int = 0


@dataclass(frozen=True)
class ContactInsights:
    """How many contacts carry each kind of detail, for the stats screen."""

    total: int = 0
    with_photos: int = 0
    with_emails: int = 0
    with_addresses: int = 0
    with_company: int = 0

    def percentage(self, name: str) -> float:
        """Share of contacts with the given detail, as a one-decimal percentage."""
        if not self.total:
            return 0.0
        return round(getattr(self, name) * 100 / self.total, 1)
