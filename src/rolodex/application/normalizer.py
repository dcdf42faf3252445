"""Raw device records -> canonical Contact. Total: any input yields a Contact, nothing is dropped."""

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from rolodex.domain import (
    NO_NAME,
    UNKNOWN_DATE,
    Address,
    Contact,
    ContactSource,
    Email,
    PhoneNumber,
    SourceType,
)

# Numeric timestamps above this are milliseconds, otherwise seconds.
_MILLIS_THRESHOLD = 1_000_000_000_000

# Checked in order; first substring hit wins.
_SOURCE_KEYWORDS: tuple[tuple[str, SourceType], ...] = (
    ("gmail", "google"),
    ("google", "google"),
    ("sim", "sim"),
    ("exchange", "exchange"),
)

PhoneFormatter = Callable[[str], str | None]


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _items(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list | tuple):
        return []
    return [_mapping(item) for item in value]


def _text(value: Any) -> str | None:
    """Stripped string, or None for missing/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_timestamp(value: Any) -> datetime:
    """Convert a raw timestamp to an aware UTC datetime. Unknown or invalid -> UNKNOWN_DATE."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        return UNKNOWN_DATE
    if isinstance(value, int | float):
        if value <= 0:
            return UNKNOWN_DATE
        seconds = value / 1000 if value > _MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return UNKNOWN_DATE
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return parse_timestamp(float(text))
        except ValueError:
            pass
        try:
            return parse_timestamp(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return UNKNOWN_DATE
    return UNKNOWN_DATE


def classify_source(raw_source: Any) -> SourceType:
    """Case-insensitive substring match over the source name and type. Falls back to device."""
    source = _mapping(raw_source)
    haystack = " ".join(
        str(source.get(key) or "") for key in ("name", "type")
    ).lower()
    for keyword, source_type in _SOURCE_KEYWORDS:
        if keyword in haystack:
            return source_type
    return "device"


def _has_explicit_primary(items: list[Mapping[str, Any]]) -> bool:
    return any(item.get("isPrimary") is True for item in items)


def _phone_numbers(
    contact_id: str,
    raw: Any,
    phone_formatter: PhoneFormatter | None,
) -> tuple[PhoneNumber, ...]:
    items = _items(raw)
    explicit = _has_explicit_primary(items)
    out = []
    for i, item in enumerate(items):
        number = _text(item.get("number")) or ""
        out.append(
            PhoneNumber(
                id=_text(item.get("id")) or f"{contact_id}-phone-{i}",
                number=number,
                label=_text(item.get("label")) or "mobile",
                is_primary=item.get("isPrimary") is True if explicit else i == 0,
                e164=phone_formatter(number) if phone_formatter and number else None,
            )
        )
    return tuple(out)


def _emails(contact_id: str, raw: Any) -> tuple[Email, ...]:
    items = _items(raw)
    explicit = _has_explicit_primary(items)
    return tuple(
        Email(
            id=_text(item.get("id")) or f"{contact_id}-email-{i}",
            email=_text(item.get("email")) or "",
            label=_text(item.get("label")) or "personal",
            is_primary=item.get("isPrimary") is True if explicit else i == 0,
        )
        for i, item in enumerate(items)
    )


def _addresses(contact_id: str, raw: Any) -> tuple[Address, ...]:
    return tuple(
        Address(
            id=_text(item.get("id")) or f"{contact_id}-address-{i}",
            street=_text(item.get("street")),
            city=_text(item.get("city")),
            # iOS exports "region", Android "state".
            state=_text(item.get("state")) or _text(item.get("region")),
            postal_code=_text(item.get("postalCode")),
            country=_text(item.get("country")),
            label=_text(item.get("label")) or "home",
        )
        for i, item in enumerate(_items(raw))
    )


def _image_uri(raw: Mapping[str, Any]) -> str | None:
    if not raw.get("imageAvailable"):
        return None
    return _text(_mapping(raw.get("image")).get("uri"))


def normalize_contact(
    raw: Any,
    *,
    position: int = 0,
    phone_formatter: PhoneFormatter | None = None,
) -> Contact:
    """Build a Contact from one raw device record.

    position is the record's index in the pull; it only matters when the record
    has no id of its own. phone_formatter, when given, fills PhoneNumber.e164.
    """
    record = _mapping(raw)
    contact_id = _text(record.get("id")) or f"unknown-{position}"
    raw_source = _mapping(record.get("source"))
    return Contact(
        id=contact_id,
        name=_text(record.get("name")) or NO_NAME,
        first_name=_text(record.get("firstName")),
        last_name=_text(record.get("lastName")),
        phone_numbers=_phone_numbers(contact_id, record.get("phoneNumbers"), phone_formatter),
        emails=_emails(contact_id, record.get("emails")),
        addresses=_addresses(contact_id, record.get("addresses")),
        job_title=_text(record.get("jobTitle")),
        company=_text(record.get("company")),
        notes=_text(record.get("note")),
        source=ContactSource(
            type=classify_source(raw_source),
            name=_text(raw_source.get("name")) or "Device",
            account_id=_text(raw_source.get("id")),
        ),
        image_uri=_image_uri(record),
        created_at=parse_timestamp(record.get("creationDate")),
        modified_at=parse_timestamp(record.get("modificationDate")),
    )
