"""
FastAPI host: exposes one ContactSession over HTTP.
Run with uvicorn: uvicorn api.main:app --reload
"""

import functools
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from rolodex.application import ContactProvider, ContactSession
from rolodex.config import Settings, config_value, get_config
from rolodex.domain import Contact
from rolodex.infrastructure import (
    JsonFileContactProvider,
    JsonFileKeyValueStore,
    StaticContactProvider,
    to_e164,
)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=config_value(get_config(), "logging.level", "INFO"),
)
logger = logging.getLogger(__name__)


def _build_provider() -> ContactProvider:
    """Device export file from CONTACTS_EXPORT_PATH, or an empty static provider."""
    export = os.environ.get("CONTACTS_EXPORT_PATH", "").strip()
    if export:
        return JsonFileContactProvider(Path(export))
    logger.warning("CONTACTS_EXPORT_PATH not set; serving an empty contact list")
    return StaticContactProvider([])


def _state_path(config: dict) -> Path:
    path = os.environ.get("ROLODEX_STATE_PATH", "").strip()
    return Path(path or config_value(config, "storage.path", ".rolodex/state.json"))


def build_session(config: dict | None = None) -> ContactSession:
    if config is None:
        config = get_config()
    settings = Settings.from_config(config)
    return ContactSession(
        _build_provider(),
        JsonFileKeyValueStore(_state_path(config)),
        settings,
        phone_formatter=functools.partial(to_e164, default_region=settings.default_region),
    )


def get_session(request: Request) -> ContactSession:
    return request.app.state.session


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.session = build_session()
    try:
        await app.state.session.load_contacts()
        yield
    finally:
        app.state.session.close()


app = FastAPI(title="Rolodex API", lifespan=lifespan)


# --- response models ---


class PhoneNumberItem(BaseModel):
    id: str
    number: str
    label: str
    is_primary: bool
    e164: str | None = None


class EmailItem(BaseModel):
    id: str
    email: str
    label: str
    is_primary: bool


class ContactItem(BaseModel):
    id: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    job_title: str | None = None
    notes: str | None = None
    source_type: str
    source_name: str
    image_uri: str | None = None
    phone_numbers: list[PhoneNumberItem] = []
    emails: list[EmailItem] = []
    created_at: str
    modified_at: str
    is_favorite: bool


class FiltersBody(BaseModel):
    query: str | None = None
    source: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    show_favorites_only: bool | None = None


def _contact_item(c: Contact) -> ContactItem:
    return ContactItem(
        id=c.id,
        name=c.name,
        first_name=c.first_name,
        last_name=c.last_name,
        company=c.company,
        job_title=c.job_title,
        notes=c.notes,
        source_type=c.source.type,
        source_name=c.source.name,
        image_uri=c.image_uri,
        phone_numbers=[
            PhoneNumberItem(
                id=p.id, number=p.number, label=p.label, is_primary=p.is_primary, e164=p.e164
            )
            for p in c.phone_numbers
        ],
        emails=[
            EmailItem(id=e.id, email=e.email, label=e.label, is_primary=e.is_primary)
            for e in c.emails
        ],
        created_at=c.created_at.isoformat(),
        modified_at=c.modified_at.isoformat(),
        is_favorite=c.is_favorite,
    )


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: contacts ---


@app.get("/contacts")
def list_contacts(request: Request):
    return [_contact_item(c) for c in get_session(request).contacts]


@app.get("/contacts/filtered")
def filtered_contacts(request: Request):
    return [_contact_item(c) for c in get_session(request).filtered_contacts]


@app.get("/contacts/{contact_id}")
def get_contact(contact_id: str, request: Request):
    contact = get_session(request).get_contact(contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return _contact_item(contact)


@app.post("/contacts/load")
async def load_contacts(request: Request):
    session = get_session(request)
    if session.loading or session.refreshing:
        raise HTTPException(status_code=409, detail="A load is already in progress")
    ok = await session.load_contacts()
    return {"ok": ok, "error": session.error, "visible": len(session.contacts)}


@app.post("/contacts/refresh")
async def refresh_contacts(request: Request):
    session = get_session(request)
    if session.loading or session.refreshing:
        raise HTTPException(status_code=409, detail="A load is already in progress")
    ok = await session.refresh_contacts()
    return {"ok": ok, "error": session.error, "visible": len(session.contacts)}


@app.post("/contacts/more")
def load_more_contacts(request: Request):
    session = get_session(request)
    released = session.load_more_contacts()
    return {"released": released, "visible": len(session.contacts)}


@app.post("/contacts/{contact_id}/favorite")
def toggle_favorite(contact_id: str, request: Request):
    session = get_session(request)
    value = session.toggle_favorite(contact_id)
    return {"id": contact_id, "is_favorite": value, "favorites": session.stats.favorites}


# --- REST: filters and stats ---


@app.get("/filters")
def get_filters(request: Request):
    return get_session(request).filters.to_dict()


@app.patch("/filters")
def update_filters(body: FiltersBody, request: Request):
    changes = body.model_dump(exclude_unset=True)
    try:
        filters = get_session(request).update_filters(**changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return filters.to_dict()


@app.get("/stats")
def get_stats(request: Request):
    session = get_session(request)
    stats = session.stats
    insights = session.insights
    return {
        "total": stats.total,
        "by_source": stats.by_source,
        "favorites": stats.favorites,
        "with_photos": stats.with_photos,
        "insights": {
            name: insights.percentage(name)
            for name in ("with_photos", "with_emails", "with_addresses", "with_company")
        },
        "load_state": session.load_state,
        "last_sync_time": _isoformat(session.last_sync_time),
        "error": session.error,
    }
