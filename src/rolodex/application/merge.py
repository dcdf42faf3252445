"""Delta-sync merge of a fresh pull into the existing aggregate."""

from collections.abc import Iterable

from rolodex.domain import Contact


def merge_contacts(existing: Iterable[Contact], incoming: Iterable[Contact]) -> list[Contact]:
    """Merge incoming records into existing ones, keyed by id.

    An incoming record replaces the existing one only when its modified_at is
    strictly newer; on a tie the existing object is kept as-is. New ids are
    appended in pull order. Records missing from the pull are kept: the merge
    never removes anything.
    """
    by_id: dict[str, Contact] = {}
    for contact in existing:
        by_id.setdefault(contact.id, contact)
    for contact in incoming:
        current = by_id.get(contact.id)
        if current is None or contact.modified_at > current.modified_at:
            by_id[contact.id] = contact
    return list(by_id.values())
