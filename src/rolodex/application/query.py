"""Search index and the filter -> sort pipeline that produces the visible contact list."""

import locale
import re
from collections.abc import Collection, Iterable, Sequence

from rapidfuzz import fuzz

from rolodex.domain import Contact, SearchFilters

_NON_DIGIT = re.compile(r"\D")


def searchable_text(contact: Contact) -> str:
    """Case-folded text a query is matched against."""
    parts: list[str] = [
        contact.name,
        contact.first_name or "",
        contact.last_name or "",
        contact.company or "",
        contact.job_title or "",
        contact.notes or "",
        *contact.tags,
    ]
    for phone in contact.phone_numbers:
        parts.append(phone.number)
        parts.append(phone.e164 or "")
        parts.append(_NON_DIGIT.sub("", phone.number))
    parts.extend(email.email for email in contact.emails)
    return " ".join(p for p in parts if p).casefold()


class SearchIndex:
    """Precomputed searchable text per contact id.

    sync() is called on every aggregate change but only re-indexes records whose
    object changed, so growing the aggregate batch by batch stays cheap.
    """

    def __init__(self, *, fuzzy: bool = False, fuzzy_threshold: float = 80) -> None:
        self.fuzzy = fuzzy
        self.fuzzy_threshold = fuzzy_threshold
        self._entries: dict[str, tuple[Contact, str]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def sync(self, records: Iterable[Contact]) -> None:
        seen = set()
        for contact in records:
            seen.add(contact.id)
            entry = self._entries.get(contact.id)
            if entry is None or entry[0] is not contact:
                self._entries[contact.id] = (contact, searchable_text(contact))
        for stale in self._entries.keys() - seen:
            del self._entries[stale]

    def text_for(self, contact: Contact) -> str:
        entry = self._entries.get(contact.id)
        if entry is None or entry[0] is not contact:
            return searchable_text(contact)
        return entry[1]

    def _keyword_matches(self, keyword: str, text: str) -> bool:
        if keyword in text:
            return True
        if not self.fuzzy:
            return False
        return fuzz.partial_ratio(keyword, text) >= self.fuzzy_threshold

    def matches(self, contact: Contact, keywords: Sequence[str]) -> bool:
        """True when every keyword matches the contact's text."""
        text = self.text_for(contact)
        return all(self._keyword_matches(keyword, text) for keyword in keywords)


def _name_key(contact: Contact) -> str:
    # strxfrm rejects embedded NUL characters.
    return locale.strxfrm(contact.name.casefold().replace("\x00", ""))


class QueryEngine:
    """Applies SearchFilters to the aggregate: search, source, favorites, then a stable sort."""

    def __init__(self, index: SearchIndex | None = None) -> None:
        self.index = index if index is not None else SearchIndex()

    def reindex(self, records: Iterable[Contact]) -> None:
        self.index.sync(records)

    def run(
        self,
        records: Sequence[Contact],
        filters: SearchFilters,
        favorite_ids: Collection[str],
    ) -> list[Contact]:
        results: Iterable[Contact] = records
        keywords = filters.keywords
        if keywords:
            results = (c for c in results if self.index.matches(c, keywords))
        source_type = filters.source_type
        if source_type is not None:
            results = (c for c in results if c.source.type == source_type)
        if filters.show_favorites_only:
            results = (c for c in results if c.id in favorite_ids)
        annotated = [c.with_favorite(c.id in favorite_ids) for c in results]

        if filters.sort_by == "name":
            key = _name_key
        elif filters.sort_by == "created_at":
            key = lambda c: c.created_at  # noqa: E731
        else:
            key = lambda c: c.modified_at  # noqa: E731
        # sorted() is stable for reverse=True as well: equal keys keep input order.
        return sorted(annotated, key=key, reverse=filters.sort_order == "desc")
