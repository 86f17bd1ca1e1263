"""
Delivery Domain Models
Shapes of the delivery log: one record per scout message that was generated
and copied out to the recruiting platform.
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

OfferStatus = Literal["none", "approved", "on_hold", "cancelled"]

OFFER_STATUS_NONE: OfferStatus = "none"
OFFER_STATUSES: tuple[str, ...] = ("none", "approved", "on_hold", "cancelled")

# Older revisions of the tool used a different vocabulary for the same four states.
LEGACY_OFFER_STATUS_MAP = {
    "offered": "none",
    "applied": "approved",
    "declined": "cancelled",
}

OFFER_STATUS_LABELS = {
    "none": "未処理",
    "approved": "承認",
    "on_hold": "保留",
    "cancelled": "取消",
}

# Status -> the one timestamp column it owns. "none" owns nothing.
STATUS_TIMESTAMP_COLUMNS = {
    "approved": "approved_at",
    "on_hold": "on_hold_at",
    "cancelled": "cancelled_at",
}

TIME_SLOTS: tuple[str, ...] = ("00-05", "06-11", "12-17", "18-23")

# Supplementary fields kept in the notes JSON blob rather than in columns.
NOTES_FIELDS: tuple[str, ...] = (
    "faculty_name",
    "department_name",
    "prefecture",
    "graduation_year",
    "major",
)


def normalize_offer_status(value: str | None) -> str | None:
    """
    Map a status value to the canonical four-state vocabulary.

    Returns None for anything that is neither canonical nor a documented
    legacy synonym.
    """
    if not value:
        return None
    value = value.strip()
    if value in OFFER_STATUSES:
        return value
    return LEGACY_OFFER_STATUS_MAP.get(value)


def offer_status_label(status: str | None) -> str:
    return OFFER_STATUS_LABELS.get(status or OFFER_STATUS_NONE, OFFER_STATUS_LABELS["none"])


def parse_notes(raw: str | None) -> dict[str, Any]:
    """Decode the notes column. Free-form (non-JSON) notes are kept under "memo"."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        return {"memo": raw}
    if isinstance(value, dict):
        return value
    return {"memo": raw}


def dump_notes(notes: dict[str, Any]) -> str | None:
    cleaned = {key: value for key, value in notes.items() if value not in (None, "")}
    if not cleaned:
        return None
    return json.dumps(cleaned, ensure_ascii=False, sort_keys=True)


@dataclass(slots=True)
class Delivery:
    """Represents a deliveries row."""

    id: str
    created_at: datetime
    sent_at: datetime
    send_date: date
    time_slot: str
    template_type: str
    final_message: str
    source_text: str | None
    student_id7: str | None
    university_name: str | None
    gender: str | None
    last_login_at: datetime | None
    offer_status: str
    approved_at: datetime | None
    on_hold_at: datetime | None
    cancelled_at: datetime | None
    notes: dict[str, Any] = field(default_factory=dict)

    def status_timestamp(self) -> datetime | None:
        """Timestamp belonging to the current offer status, if any."""
        column = STATUS_TIMESTAMP_COLUMNS.get(self.offer_status)
        return getattr(self, column) if column else None


@dataclass(slots=True)
class DeliveryFilters:
    """Query-string filters shared by the list and CSV export endpoints."""

    send_date_from: date | None = None
    send_date_to: date | None = None
    time_slot: str | None = None
    template_type: str | None = None
    student_id7: str | None = None
    last_login_from: datetime | None = None
    last_login_to: datetime | None = None
    offer_status: str | None = None


@dataclass(slots=True)
class NewDelivery:
    """Values for a row about to be inserted."""

    sent_at: datetime
    send_date: date
    time_slot: str
    template_type: str
    final_message: str
    source_text: str | None = None
    student_id7: str | None = None
    university_name: str | None = None
    gender: str | None = None
    last_login_at: datetime | None = None
    offer_status: str = OFFER_STATUS_NONE
    notes: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class AnalyticsRow:
    """Delivery count for one send_date x time_slot x template_type cell."""

    send_date: date
    time_slot: str
    template_type: str
    count: int
