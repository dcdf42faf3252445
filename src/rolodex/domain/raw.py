"""Shape of a raw record as exported by the device contact directory.

Every field is optional. Providers may hand over plain dicts with more or fewer
keys; the normalizer only relies on what is declared here.
"""

from typing import Any, TypedDict


class RawPhoneNumber(TypedDict, total=False):
    id: str
    number: str
    label: str
    isPrimary: bool


class RawEmail(TypedDict, total=False):
    id: str
    email: str
    label: str
    isPrimary: bool


class RawAddress(TypedDict, total=False):
    id: str
    street: str
    city: str
    region: str
    state: str
    postalCode: str
    country: str
    label: str


class RawSource(TypedDict, total=False):
    id: str
    name: str
    type: str


class RawImage(TypedDict, total=False):
    uri: str


class RawContact(TypedDict, total=False):
    id: str
    name: str
    firstName: str
    lastName: str
    phoneNumbers: list[RawPhoneNumber]
    emails: list[RawEmail]
    addresses: list[RawAddress]
    jobTitle: str
    company: str
    note: str
    source: RawSource
    imageAvailable: bool
    image: RawImage
    # Seconds or milliseconds since the epoch, ISO-8601 text, or a datetime.
    creationDate: Any
    modificationDate: Any
