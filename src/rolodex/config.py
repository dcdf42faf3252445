"""Load and validate the YAML configuration (batch sizes, search, storage keys, defaults)."""

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from rolodex.domain import SearchFilters

DEFAULTS: dict[str, Any] = {
    "loader": {
        "initial_batch": 50,
        "batch_size": 50,
        "background_delay_ms": 100,
    },
    "search": {
        "fuzzy": False,
        "fuzzy_threshold": 80,
    },
    "contacts": {
        "default_sort": "name",
        "default_sort_direction": "asc",
        "default_region": None,
    },
    "storage": {
        "path": ".rolodex/state.json",
        "keys": {
            "favorites": "favorite_contacts",
            "filters": "contact_filters",
            "last_sync": "last_sync_timestamp",
        },
    },
    "api": {
        "base_url": "",
        "timeout": 10000,
        "endpoints": {},
    },
    "logging": {
        "level": "INFO",
    },
}


def _repo_root() -> Path:
    """Return repo root (parent of src)."""
    return Path(__file__).resolve().parent.parent.parent


def get_config_path() -> Path:
    """Return path to the config YAML (ROLODEX_CONFIG env or config/rolodex.yaml)."""
    path = os.environ.get("ROLODEX_CONFIG", "").strip()
    if path:
        return Path(path).resolve()
    return _repo_root() / "config" / "rolodex.yaml"


def _deep_merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def _validate(config: dict) -> None:
    loader = config["loader"]
    for key in ("initial_batch", "batch_size"):
        value = loader.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError(f"loader.{key} must be a positive integer")
    delay = loader.get("background_delay_ms")
    if not isinstance(delay, int | float) or isinstance(delay, bool) or delay < 0:
        raise ValueError("loader.background_delay_ms must be a non-negative number")
    threshold = config["search"].get("fuzzy_threshold")
    if not isinstance(threshold, int | float) or not 0 <= threshold <= 100:
        raise ValueError("search.fuzzy_threshold must be between 0 and 100")
    contacts = config["contacts"]
    # Raises ValueError for an unknown sort key or direction.
    SearchFilters(
        sort_by=contacts.get("default_sort"),
        sort_order=contacts.get("default_sort_direction"),
    )
    keys = config["storage"].get("keys") or {}
    for key in ("favorites", "filters", "last_sync"):
        if not keys.get(key):
            raise ValueError(f"storage.keys.{key} is required")


def load_config(path: Path | None = None) -> dict:
    """Load config YAML over the defaults. A missing file yields the defaults."""
    if path is None:
        path = get_config_path()
    overrides: Any = {}
    if path.exists():
        overrides = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(overrides, dict):
        raise ValueError("Config YAML must be a dict")
    config = _deep_merge(DEFAULTS, overrides)
    _validate(config)
    return config


_config_cache: dict | None = None


def get_config(cache: bool = True) -> dict:
    """Load config (cached by default). Pass cache=False to reload."""
    global _config_cache
    if cache and _config_cache is not None:
        return _config_cache
    _config_cache = load_config()
    return _config_cache


def config_value(config: dict, path: str, default: Any = None) -> Any:
    """Resolve a dotted path like 'loader.batch_size'. Missing paths return default."""
    obj: Any = config
    for part in path.split("."):
        if not isinstance(obj, dict) or part not in obj:
            return default
        obj = obj[part]
    return obj


def api_endpoint(config: dict, name: str) -> str | None:
    """Full URL for a named endpoint of the (static) api section, or None."""
    endpoint = config_value(config, f"api.endpoints.{name}")
    if endpoint is None:
        return None
    base = (config_value(config, "api.base_url") or "").rstrip("/")
    return f"{base}/{str(endpoint).lstrip('/')}"


@dataclass(frozen=True)
class LoaderSettings:
    initial_batch: int = 50
    batch_size: int = 50
    background_delay_ms: float = 100

    @property
    def background_delay(self) -> float:
        """Delay between background batches, in seconds."""
        return self.background_delay_ms / 1000


@dataclass(frozen=True)
class StorageKeys:
    favorites: str = "favorite_contacts"
    filters: str = "contact_filters"
    last_sync: str = "last_sync_timestamp"


@dataclass(frozen=True)
class Settings:
    """Typed view of the config the session needs."""

    loader: LoaderSettings = field(default_factory=LoaderSettings)
    storage_keys: StorageKeys = field(default_factory=StorageKeys)
    default_filters: SearchFilters = field(default_factory=SearchFilters)
    default_region: str | None = None
    fuzzy_search: bool = False
    fuzzy_threshold: float = 80

    @classmethod
    def from_config(cls, config: dict | None = None) -> "Settings":
        if config is None:
            config = get_config()
        loader = config["loader"]
        keys = config["storage"]["keys"]
        contacts = config["contacts"]
        return cls(
            loader=LoaderSettings(
                initial_batch=loader["initial_batch"],
                batch_size=loader["batch_size"],
                background_delay_ms=loader["background_delay_ms"],
            ),
            storage_keys=StorageKeys(
                favorites=keys["favorites"],
                filters=keys["filters"],
                last_sync=keys["last_sync"],
            ),
            default_filters=SearchFilters(
                sort_by=contacts["default_sort"],
                sort_order=contacts["default_sort_direction"],
            ),
            default_region=contacts.get("default_region") or None,
            fuzzy_search=bool(config["search"]["fuzzy"]),
            fuzzy_threshold=config["search"]["fuzzy_threshold"],
        )
