"""Unit tests for the record normalizer: defaults, ids, timestamps, source classification."""

import functools
from datetime import datetime, timezone

from rolodex.application import classify_source, normalize_contact
from rolodex.application.normalizer import parse_timestamp
from rolodex.domain import NO_NAME, UNKNOWN_DATE
from rolodex.infrastructure.phone import to_e164


def test_empty_record_gets_documented_defaults() -> None:
    c = normalize_contact({}, position=7)
    assert c.id == "unknown-7"
    assert c.name == NO_NAME
    assert c.phone_numbers == ()
    assert c.emails == ()
    assert c.addresses == ()
    assert c.tags == ()
    assert c.is_favorite is False
    assert c.source.type == "device"
    assert c.image_uri is None


def test_non_mapping_input_is_defaulted_not_rejected() -> None:
    for raw in (None, "garbage", 42, ["a"]):
        c = normalize_contact(raw)
        assert c.name == NO_NAME
        assert c.created_at == UNKNOWN_DATE


def test_blank_name_becomes_sentinel() -> None:
    assert normalize_contact({"id": "1", "name": "   "}).name == NO_NAME


def test_missing_timestamps_use_sentinel_not_now() -> None:
    c = normalize_contact({"id": "1"})
    assert c.created_at == UNKNOWN_DATE
    assert c.modified_at == UNKNOWN_DATE
    assert c.modified_at < datetime(2000, 1, 1, tzinfo=timezone.utc)


def test_non_positive_timestamps_use_sentinel() -> None:
    assert parse_timestamp(0) == UNKNOWN_DATE
    assert parse_timestamp(-5) == UNKNOWN_DATE
    assert parse_timestamp(None) == UNKNOWN_DATE
    assert parse_timestamp("not a date") == UNKNOWN_DATE
    assert parse_timestamp(True) == UNKNOWN_DATE


def test_seconds_and_milliseconds_resolve_to_same_instant() -> None:
    expected = datetime(2020, 9, 13, 12, 26, 40, tzinfo=timezone.utc)
    assert parse_timestamp(1_600_000_000) == expected
    assert parse_timestamp(1_600_000_000_000) == expected
    assert parse_timestamp("1600000000") == expected


def test_iso_strings_and_naive_datetimes_become_utc() -> None:
    assert parse_timestamp("2023-05-01T10:00:00Z") == datetime(2023, 5, 1, 10, tzinfo=timezone.utc)
    naive = parse_timestamp(datetime(2023, 5, 1, 10))
    assert naive.tzinfo is not None


def test_sub_record_ids_synthesized_from_parent_and_position() -> None:
    c = normalize_contact(
        {
            "id": "c1",
            "phoneNumbers": [{"number": "1"}, {"id": "own", "number": "2"}],
            "emails": [{"email": "a@x.io"}],
            "addresses": [{"city": "Rome"}],
        }
    )
    assert [p.id for p in c.phone_numbers] == ["c1-phone-0", "own"]
    assert c.emails[0].id == "c1-email-0"
    assert c.addresses[0].id == "c1-address-0"
    assert c.addresses[0].city == "Rome"
    assert c.addresses[0].label == "home"


def test_first_phone_is_primary_unless_another_is_explicit() -> None:
    implicit = normalize_contact({"id": "1", "phoneNumbers": [{"number": "1"}, {"number": "2"}]})
    assert [p.is_primary for p in implicit.phone_numbers] == [True, False]
    assert implicit.primary_phone.number == "1"

    explicit = normalize_contact(
        {"id": "1", "phoneNumbers": [{"number": "1"}, {"number": "2", "isPrimary": True}]}
    )
    assert [p.is_primary for p in explicit.phone_numbers] == [False, True]
    assert explicit.primary_phone.number == "2"


def test_junk_sub_records_keep_their_position() -> None:
    c = normalize_contact({"id": "c1", "phoneNumbers": ["junk", {"number": "555"}]})
    assert len(c.phone_numbers) == 2
    assert c.phone_numbers[0].number == ""
    assert c.phone_numbers[1].id == "c1-phone-1"


def test_phone_formatter_fills_e164() -> None:
    formatter = functools.partial(to_e164, default_region="US")
    c = normalize_contact(
        {"id": "1", "phoneNumbers": [{"number": "202 555 1234"}, {"number": "abc"}]},
        phone_formatter=formatter,
    )
    assert c.phone_numbers[0].e164 == "+12025551234"
    assert c.phone_numbers[1].e164 is None


def test_classify_source() -> None:
    assert classify_source({"name": "someone@gmail.com"}) == "google"
    assert classify_source({"name": "Google Account"}) == "google"
    assert classify_source({"name": "SIM Card"}) == "sim"
    assert classify_source({"name": "Work", "type": "com.microsoft.EXCHANGE"}) == "exchange"
    assert classify_source({"name": "Phone"}) == "device"
    assert classify_source(None) == "device"


def test_source_and_image_fields() -> None:
    c = normalize_contact(
        {
            "id": "1",
            "source": {"name": "bob@gmail.com", "id": "acct-9"},
            "imageAvailable": True,
            "image": {"uri": "file:///photo.jpg"},
        }
    )
    assert c.source.type == "google"
    assert c.source.name == "bob@gmail.com"
    assert c.source.account_id == "acct-9"
    assert c.image_uri == "file:///photo.jpg"

    hidden = normalize_contact({"id": "2", "imageAvailable": False, "image": {"uri": "x"}})
    assert hidden.image_uri is None


def test_free_text_fields_mapped() -> None:
    c = normalize_contact(
        {
            "id": "1",
            "name": "Ada Lovelace",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "jobTitle": "Analyst",
            "company": "Engines Ltd",
            "note": "Met at the salon",
        }
    )
    assert (c.first_name, c.last_name) == ("Ada", "Lovelace")
    assert c.job_title == "Analyst"
    assert c.company == "Engines Ltd"
    assert c.notes == "Met at the salon"
    assert c.initials == "AL"
