"""Phone number normalization to E.164, used to index device numbers in one canonical form."""

import phonenumbers


def to_e164(number: str | None, default_region: str | None = None) -> str | None:
    """Return the E.164 form of a device phone number, or None if it cannot be parsed.

    Device books are full of local numbers without a country code; those only
    parse when default_region (e.g. "US", "IT") is given. Numbers that carry a
    country code ignore default_region.
    """
    text = str(number or "").strip()
    if not text:
        return None
    try:
        parsed = phonenumbers.parse(text, default_region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
