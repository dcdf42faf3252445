"""Summary counts over the whole aggregate. Always recomputed from scratch."""

from collections.abc import Collection, Iterable

from rolodex.domain import Contact, ContactInsights, ContactStats


def compute_stats(records: Iterable[Contact], favorite_ids: Collection[str]) -> ContactStats:
    total = 0
    favorites = 0
    with_photos = 0
    by_source: dict[str, int] = {}
    for contact in records:
        total += 1
        by_source[contact.source.type] = by_source.get(contact.source.type, 0) + 1
        if contact.id in favorite_ids:
            favorites += 1
        if contact.image_uri:
            with_photos += 1
    return ContactStats(
        total=total,
        by_source=by_source,
        favorites=favorites,
        with_photos=with_photos,
    )


def compute_insights(records: Iterable[Contact]) -> ContactInsights:
    counts = {"total": 0, "with_photos": 0, "with_emails": 0, "with_addresses": 0, "with_company": 0}
    for contact in records:
        counts["total"] += 1
        counts["with_photos"] += bool(contact.image_uri)
        counts["with_emails"] += bool(contact.emails)
        counts["with_addresses"] += bool(contact.addresses)
        counts["with_company"] += bool(contact.company)
    return ContactInsights(**counts)
