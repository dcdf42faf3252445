"""Infrastructure layer: concrete implementations of application ports."""

from rolodex.infrastructure.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore
from rolodex.infrastructure.phone import to_e164
from rolodex.infrastructure.providers import JsonFileContactProvider, StaticContactProvider

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileContactProvider",
    "JsonFileKeyValueStore",
    "StaticContactProvider",
    "to_e164",
]
