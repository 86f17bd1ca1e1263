"""
Delivery log business rules.

Creation derives send_date / time_slot in JST and back-fills missing fields
from the pasted source text. Status changes keep the three status timestamps
mutually exclusive. Bulk import is per-record fault tolerant.
"""

import hashlib
import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from scout.config import settings
from scout.db.helpers import DatabaseError
from scout.infrastructure.observability.logging import get_logger
from scout.models.domain.delivery_domain import (
    NOTES_FIELDS,
    OFFER_STATUS_NONE,
    OFFER_STATUSES,
    TIME_SLOTS,
    AnalyticsRow,
    Delivery,
    DeliveryFilters,
    NewDelivery,
    normalize_offer_status,
    parse_notes,
)
from scout.models.domain.scout_domain import GENDERS, PATTERNS
from scout.repositories.delivery_repository import DeliveryRepository
from scout.services.csv_export import export_filename, render_deliveries_csv
from scout.services.scout.field_extractors import (
    extract_department_name,
    extract_faculty_name,
    extract_gender,
    extract_graduation_year,
    extract_last_login_at,
    extract_prefecture,
    extract_student_id7,
    extract_university_name,
)
from scout.utils.time_utils import get_jst_date, get_time_slot

logger = get_logger(__name__)

STUDENT_ID7 = re.compile(r"^[0-9]{7}$")
DEDUPE_HEAD_CHARS = 200

# PATCH fields that live in columns; everything in NOTES_FIELDS goes to notes.
COLUMN_FIELDS: tuple[str, ...] = (
    "final_message",
    "student_id7",
    "university_name",
    "gender",
    "template_type",
)


class DeliveryValidationError(Exception):
    """Raised for bad input; surfaced as HTTP 400."""


class DeliveryNotFoundError(Exception):
    """Raised when a delivery id does not exist; surfaced as HTTP 404."""


@dataclass(slots=True)
class ImportResult:
    inserted: int = 0
    skipped: int = 0
    total: int = 0
    errors: list[str] = field(default_factory=list)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _validate_template_type(value: str | None) -> str:
    if value not in PATTERNS:
        raise DeliveryValidationError("template_type は A または B を指定してください")
    return value


def _validate_student_id7(value: str | None) -> str | None:
    if value is not None and not STUDENT_ID7.match(value):
        raise DeliveryValidationError("student_id7 は7桁の数字で指定してください")
    return value


def _validate_gender(value: str | None) -> str | None:
    if value is not None and value not in GENDERS:
        raise DeliveryValidationError("gender は male / female / other / unknown のいずれかです")
    return value


def parse_datetime(value: Any) -> datetime | None:
    """Accept a datetime or an ISO 8601 string; None when blank or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def dedupe_key(sent_at: datetime, final_message: str) -> str:
    """sent_at instant + first 16 hex digits of md5(first 200 chars of the message)."""
    head = (final_message or "")[:DEDUPE_HEAD_CHARS]
    digest = hashlib.md5(head.encode("utf-8")).hexdigest()[:16]
    return f"{_to_utc(sent_at).isoformat()}-{digest}"


def _supplementary_notes(source_text: str | None, provided: dict[str, Any]) -> dict[str, Any]:
    """Notes blob: provided values first, extracted values for the gaps."""
    extractors = {
        "faculty_name": extract_faculty_name,
        "department_name": extract_department_name,
        "prefecture": extract_prefecture,
        "graduation_year": extract_graduation_year,
    }
    notes: dict[str, Any] = {}
    for name in NOTES_FIELDS:
        value = _blank_to_none(provided.get(name))
        if value is None and source_text and name in extractors:
            value = extractors[name](source_text)
        if value is not None:
            notes[name] = value
    return notes


async def create_delivery(
    *,
    sent_at: datetime | None,
    template_type: str | None,
    final_message: str | None,
    source_text: str | None = None,
    student_id7: str | None = None,
    last_login_at: datetime | None = None,
    university_name: str | None = None,
    gender: str | None = None,
    **supplementary: Any,
) -> Delivery:
    """
    Record one delivery.

    Missing student id, last login, university, gender and the notes fields
    are extracted from ``source_text`` when it is provided.

    Raises:
        DeliveryValidationError: Missing or malformed required input
    """
    final_message = final_message if final_message and final_message.strip() else None
    if sent_at is None or not template_type or final_message is None:
        raise DeliveryValidationError("sent_at, template_type, final_message は必須です")
    _validate_template_type(template_type)
    sent_at = _to_utc(sent_at)

    source_text = _blank_to_none(source_text)
    student_id7 = _validate_student_id7(_blank_to_none(student_id7))
    university_name = _blank_to_none(university_name)
    gender = _validate_gender(_blank_to_none(gender))

    if source_text:
        student_id7 = student_id7 or extract_student_id7(source_text)
        last_login_at = last_login_at or extract_last_login_at(source_text)
        university_name = university_name or extract_university_name(source_text)
        gender = gender or extract_gender(source_text)

    new = NewDelivery(
        sent_at=sent_at,
        send_date=get_jst_date(sent_at),
        time_slot=get_time_slot(sent_at),
        template_type=template_type,
        final_message=final_message,
        source_text=source_text,
        student_id7=student_id7,
        university_name=university_name,
        gender=gender,
        last_login_at=last_login_at,
        offer_status=OFFER_STATUS_NONE,
        notes=_supplementary_notes(source_text, supplementary),
    )
    return await DeliveryRepository.create(new)


def _clamp_paging(page: int | None, page_size: int | None) -> tuple[int, int]:
    page = max(1, page or 1)
    max_size = settings.DELIVERIES_MAX_PAGE_SIZE
    page_size = min(max_size, max(1, page_size or max_size))
    return page, page_size


def validate_filters(filters: DeliveryFilters) -> DeliveryFilters:
    if filters.time_slot and filters.time_slot not in TIME_SLOTS:
        raise DeliveryValidationError("time_slot が不正です")
    if filters.template_type:
        _validate_template_type(filters.template_type)
    if filters.offer_status:
        status = normalize_offer_status(filters.offer_status)
        if status is None:
            raise DeliveryValidationError("offer_status が不正です")
        filters.offer_status = status
    return filters


async def list_deliveries(
    filters: DeliveryFilters, page: int | None = 1, page_size: int | None = None
) -> tuple[list[Delivery], int, int, int]:
    """Returns (items, total, page, page_size)."""
    validate_filters(filters)
    page, page_size = _clamp_paging(page, page_size)

    total = await DeliveryRepository.count(filters)
    items = await DeliveryRepository.find(filters, limit=page_size, offset=(page - 1) * page_size)
    return items, total, page, page_size


async def get_delivery(delivery_id: str) -> Delivery:
    delivery = await DeliveryRepository.get(delivery_id)
    if delivery is None:
        raise DeliveryNotFoundError(delivery_id)
    return delivery


async def update_delivery(delivery_id: str, changes: dict[str, Any]) -> Delivery:
    """
    Partially update a delivery.

    Empty strings clear nullable fields. Notes fields are merged into the
    existing notes blob.

    Raises:
        DeliveryValidationError: Nothing to update, or an invalid value
        DeliveryNotFoundError: Unknown id
    """
    known = {key: value for key, value in changes.items() if key in COLUMN_FIELDS + NOTES_FIELDS}
    if not known:
        raise DeliveryValidationError("更新する項目がありません")

    current = await get_delivery(delivery_id)

    updates: dict[str, Any] = {}
    for name in COLUMN_FIELDS:
        if name not in known:
            continue
        value = _blank_to_none(known[name])
        if name == "final_message" and value is None:
            raise DeliveryValidationError("final_message は空にできません")
        if name == "template_type":
            value = _validate_template_type(value)
        elif name == "student_id7":
            value = _validate_student_id7(value)
        elif name == "gender":
            value = _validate_gender(value)
        updates[name] = value

    note_changes = {name: _blank_to_none(known[name]) for name in NOTES_FIELDS if name in known}
    if note_changes:
        notes = dict(current.notes)
        for name, value in note_changes.items():
            if value is None:
                notes.pop(name, None)
            else:
                notes[name] = value
        updates["notes"] = notes

    updated = await DeliveryRepository.update(current.id, updates)
    if updated is None:
        raise DeliveryNotFoundError(delivery_id)
    return updated


async def set_offer_status(
    delivery_id: str, status: str | None, set_at: datetime | None = None
) -> Delivery:
    """
    Move a delivery to a new offer status.

    Legacy synonyms are accepted. The status's own timestamp is set to
    ``set_at`` (default now) and the other two are cleared.
    """
    canonical = normalize_offer_status(status)
    if canonical is None:
        raise DeliveryValidationError(
            f"status は {' / '.join(OFFER_STATUSES)} のいずれかを指定してください"
        )

    updated = await DeliveryRepository.update_status(
        delivery_id, canonical, set_at or datetime.now(UTC)
    )
    if updated is None:
        raise DeliveryNotFoundError(delivery_id)
    return updated


async def delete_delivery(delivery_id: str) -> None:
    if not await DeliveryRepository.delete(delivery_id):
        raise DeliveryNotFoundError(delivery_id)


async def export_deliveries_csv(filters: DeliveryFilters) -> tuple[str, str]:
    """
    Render every delivery matching the filters.

    Returns:
        (filename, csv text)

    Raises:
        DeliveryValidationError: More rows than the export cap
    """
    validate_filters(filters)
    limit = settings.EXPORT_MAX_ROWS
    total = await DeliveryRepository.count(filters)
    if total > limit:
        raise DeliveryValidationError(
            f"エクスポート件数が上限（{limit:,}件）を超えています。"
            f"検索条件を絞り込んでください。（現在: {total:,}件）"
        )

    deliveries = await DeliveryRepository.find(filters)
    logger.info("Deliveries exported", rows=len(deliveries))
    return export_filename(), render_deliveries_csv(deliveries)


async def delivery_analytics(date_from: date | None, date_to: date | None) -> list[AnalyticsRow]:
    if date_from is None or date_to is None:
        raise DeliveryValidationError("send_date_from と send_date_to は必須です")
    if date_from > date_to:
        raise DeliveryValidationError("send_date_from は send_date_to 以前の日付を指定してください")
    return await DeliveryRepository.analytics(date_from, date_to)


def _first_present(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _build_import_delivery(record: dict[str, Any]) -> NewDelivery:
    """Validate one import record. Raises ValueError with a user-facing reason."""
    raw_sent_at = _first_present(record, "sent_at", "timestamp", "created_at")
    if raw_sent_at is None:
        raise ValueError("日時が見つかりません")
    sent_at = parse_datetime(raw_sent_at)
    if sent_at is None:
        raise ValueError("日時の形式が不正です")
    sent_at = _to_utc(sent_at)

    template_type = _first_present(record, "template_type", "pattern")
    if template_type not in PATTERNS:
        raise ValueError("template_type が不正です")

    final_message = _first_present(record, "final_message", "generated_message")
    if not final_message:
        raise ValueError("final_message が見つかりません")
    if not isinstance(final_message, str):
        raise ValueError("final_message は文字列で指定してください")

    offer_status = OFFER_STATUS_NONE
    if record.get("offer_status"):
        offer_status = normalize_offer_status(str(record["offer_status"]))
        if offer_status is None:
            raise ValueError("offer_status が不正です")

    source_text = _first_present(record, "source_text", "paste_text")
    if source_text is not None and not isinstance(source_text, str):
        raise ValueError("source_text は文字列で指定してください")

    student_id7 = _blank_to_none(record.get("student_id7"))
    if student_id7 is not None and not (
        isinstance(student_id7, str) and STUDENT_ID7.match(student_id7)
    ):
        raise ValueError("student_id7 は7桁の数字で指定してください")

    last_login_at = parse_datetime(record.get("last_login_at"))
    if source_text:
        student_id7 = student_id7 or extract_student_id7(source_text)
        last_login_at = last_login_at or extract_last_login_at(source_text)

    raw_notes = record.get("notes")
    if isinstance(raw_notes, dict):
        notes = raw_notes
    elif raw_notes is None or isinstance(raw_notes, str):
        notes = parse_notes(raw_notes)
    else:
        raise ValueError("notes の形式が不正です")

    return NewDelivery(
        sent_at=sent_at,
        send_date=get_jst_date(sent_at),
        time_slot=get_time_slot(sent_at),
        template_type=template_type,
        final_message=final_message,
        source_text=source_text,
        student_id7=student_id7,
        last_login_at=last_login_at,
        offer_status=offer_status,
        notes=notes,
    )


async def import_deliveries(records: list[Any]) -> ImportResult:
    """
    Bulk-insert delivery records (admin tooling).

    Records already present (same sent_at and message hash) are skipped.
    A bad record is counted as skipped and never aborts the batch.
    """
    if not records:
        raise DeliveryValidationError("records 配列は必須です")

    result = ImportResult(total=len(records))
    errors: list[str] = []

    existing = {
        dedupe_key(sent_at, message_head)
        for sent_at, message_head in await DeliveryRepository.list_message_keys()
    }

    for index, record in enumerate(records):
        try:
            if not isinstance(record, dict):
                raise ValueError("レコードの形式が不正です")
            new = _build_import_delivery(record)
            key = dedupe_key(new.sent_at, new.final_message)
            if key in existing:
                result.skipped += 1
                continue

            await DeliveryRepository.create(new)
            existing.add(key)
            result.inserted += 1
        except (ValueError, TypeError, DatabaseError) as e:
            errors.append(f"Record {index}: {e}")
            result.skipped += 1

    result.errors = errors[: settings.IMPORT_ERROR_LIMIT]
    logger.info(
        "Delivery import finished",
        inserted=result.inserted,
        skipped=result.skipped,
        total=result.total,
        error_count=len(errors),
    )
    return result
