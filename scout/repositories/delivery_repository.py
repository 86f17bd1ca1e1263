"""
Persistence layer for the delivery log.

All SQL touching the deliveries table lives here; services deal in
Delivery / NewDelivery dataclasses only.
"""

import uuid
from datetime import date, datetime
from typing import Any

from scout.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one, fetch_val
from scout.infrastructure.observability.logging import get_logger
from scout.models.domain.delivery_domain import (
    STATUS_TIMESTAMP_COLUMNS,
    AnalyticsRow,
    Delivery,
    DeliveryFilters,
    NewDelivery,
    dump_notes,
    parse_notes,
)

logger = get_logger(__name__)


class DeliveryRepositoryError(DatabaseError):
    """More specific exception for delivery repository failures."""


def _parse_id(delivery_id: str) -> str | None:
    """Canonical UUID string, or None when the id cannot be a delivery id."""
    try:
        return str(uuid.UUID(str(delivery_id)))
    except ValueError:
        return None


class DeliveryRepository:
    """SQL for the deliveries table."""

    SELECT_COLUMNS = """
        id, created_at, sent_at, send_date, time_slot, template_type,
        final_message, source_text, student_id7, university_name, gender,
        last_login_at, offer_status, approved_at, on_hold_at, cancelled_at, notes
    """

    # Columns a PATCH may touch. Anything else is ignored.
    UPDATABLE_COLUMNS = frozenset(
        {"final_message", "student_id7", "university_name", "gender", "template_type", "notes"}
    )

    @classmethod
    def _row_to_delivery(cls, row: dict | None) -> Delivery | None:
        if not row:
            return None

        return Delivery(
            id=str(row["id"]),
            created_at=row["created_at"],
            sent_at=row["sent_at"],
            send_date=row["send_date"],
            time_slot=row["time_slot"],
            template_type=row["template_type"],
            final_message=row["final_message"],
            source_text=row.get("source_text"),
            student_id7=row.get("student_id7"),
            university_name=row.get("university_name"),
            gender=row.get("gender"),
            last_login_at=row.get("last_login_at"),
            offer_status=row.get("offer_status") or "none",
            approved_at=row.get("approved_at"),
            on_hold_at=row.get("on_hold_at"),
            cancelled_at=row.get("cancelled_at"),
            notes=parse_notes(row.get("notes")),
        )

    @staticmethod
    def _build_where(filters: DeliveryFilters | None) -> tuple[str, list[Any]]:
        """Translate filters into a WHERE clause and its parameters."""
        conditions: list[str] = []
        params: list[Any] = []

        if filters is None:
            return "", params

        if filters.send_date_from:
            conditions.append("send_date >= %s")
            params.append(filters.send_date_from)
        if filters.send_date_to:
            conditions.append("send_date <= %s")
            params.append(filters.send_date_to)
        if filters.time_slot:
            conditions.append("time_slot = %s")
            params.append(filters.time_slot)
        if filters.template_type:
            conditions.append("template_type = %s")
            params.append(filters.template_type)
        if filters.student_id7:
            # Substring match without LIKE wildcards in user input
            conditions.append("strpos(student_id7, %s) > 0")
            params.append(filters.student_id7)
        if filters.last_login_from:
            conditions.append("last_login_at >= %s")
            params.append(filters.last_login_from)
        if filters.last_login_to:
            conditions.append("last_login_at <= %s")
            params.append(filters.last_login_to)
        if filters.offer_status:
            conditions.append("offer_status = %s")
            params.append(filters.offer_status)

        if not conditions:
            return "", params
        return "WHERE " + " AND ".join(conditions), params

    @classmethod
    async def create(cls, new: NewDelivery) -> Delivery:
        """Insert a delivery row and return it."""
        query = f"""
            INSERT INTO deliveries (
                sent_at, send_date, time_slot, template_type, final_message,
                source_text, student_id7, university_name, gender, last_login_at,
                offer_status, notes
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {cls.SELECT_COLUMNS}
        """
        params = (
            new.sent_at,
            new.send_date,
            new.time_slot,
            new.template_type,
            new.final_message,
            new.source_text,
            new.student_id7,
            new.university_name,
            new.gender,
            new.last_login_at,
            new.offer_status,
            dump_notes(new.notes),
        )

        row = await fetch_one(query, params)
        if not row:
            raise DeliveryRepositoryError("Failed to create delivery", operation="create")

        delivery = cls._row_to_delivery(row)
        logger.info(
            "Delivery created",
            delivery_id=delivery.id,
            template_type=delivery.template_type,
            send_date=str(delivery.send_date),
            time_slot=delivery.time_slot,
        )
        return delivery

    @classmethod
    async def get(cls, delivery_id: str) -> Delivery | None:
        parsed_id = _parse_id(delivery_id)
        if parsed_id is None:
            return None

        query = f"SELECT {cls.SELECT_COLUMNS} FROM deliveries WHERE id = %s"
        row = await fetch_one(query, (parsed_id,))
        return cls._row_to_delivery(row)

    @classmethod
    async def count(cls, filters: DeliveryFilters | None = None) -> int:
        where, params = cls._build_where(filters)
        total = await fetch_val(f"SELECT COUNT(*) AS total FROM deliveries {where}", tuple(params))
        return int(total or 0)

    @classmethod
    async def find(
        cls,
        filters: DeliveryFilters | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Delivery]:
        """Deliveries matching the filters, newest sent_at first."""
        where, params = cls._build_where(filters)
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM deliveries
            {where}
            ORDER BY sent_at DESC, id
        """
        if limit is not None:
            query += " LIMIT %s OFFSET %s"
            params.extend([limit, offset])

        rows = await fetch_all(query, tuple(params))
        return [cls._row_to_delivery(row) for row in rows]

    @classmethod
    async def update(cls, delivery_id: str, changes: dict[str, Any]) -> Delivery | None:
        """
        Apply column changes and return the updated row.

        ``notes`` is expected as a dict and stored serialised.
        """
        parsed_id = _parse_id(delivery_id)
        if parsed_id is None:
            return None

        columns = [column for column in changes if column in cls.UPDATABLE_COLUMNS]
        if not columns:
            return await cls.get(parsed_id)

        assignments = ", ".join(f"{column} = %s" for column in columns)
        params = [
            dump_notes(changes[column]) if column == "notes" else changes[column]
            for column in columns
        ]
        params.append(parsed_id)

        query = f"""
            UPDATE deliveries
            SET {assignments}
            WHERE id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, tuple(params))
        if row:
            logger.info("Delivery updated", delivery_id=parsed_id, columns=columns)
        return cls._row_to_delivery(row)

    @classmethod
    async def update_status(
        cls, delivery_id: str, status: str, set_at: datetime
    ) -> Delivery | None:
        """Set offer_status, stamp its timestamp column and clear the other two."""
        parsed_id = _parse_id(delivery_id)
        if parsed_id is None:
            return None

        owned_column = STATUS_TIMESTAMP_COLUMNS.get(status)
        timestamps = [
            set_at if column == owned_column else None
            for column in ("approved_at", "on_hold_at", "cancelled_at")
        ]

        query = f"""
            UPDATE deliveries
            SET offer_status = %s,
                approved_at = %s,
                on_hold_at = %s,
                cancelled_at = %s
            WHERE id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (status, *timestamps, parsed_id))
        if row:
            logger.info("Delivery status updated", delivery_id=parsed_id, offer_status=status)
        return cls._row_to_delivery(row)

    @classmethod
    async def delete(cls, delivery_id: str) -> bool:
        parsed_id = _parse_id(delivery_id)
        if parsed_id is None:
            return False

        deleted = await execute_query("DELETE FROM deliveries WHERE id = %s", (parsed_id,))
        if deleted:
            logger.info("Delivery deleted", delivery_id=parsed_id)
        return deleted > 0

    @classmethod
    async def analytics(cls, date_from: date, date_to: date) -> list[AnalyticsRow]:
        """Delivery counts grouped by send_date x time_slot x template_type."""
        query = """
            SELECT send_date, time_slot, template_type, COUNT(*) AS count
            FROM deliveries
            WHERE send_date >= %s AND send_date <= %s
            GROUP BY send_date, time_slot, template_type
            ORDER BY send_date DESC, time_slot ASC, template_type ASC
        """
        rows = await fetch_all(query, (date_from, date_to))
        return [
            AnalyticsRow(
                send_date=row["send_date"],
                time_slot=row["time_slot"],
                template_type=row["template_type"],
                count=int(row["count"]),
            )
            for row in rows
        ]

    @classmethod
    async def list_message_keys(cls) -> list[tuple[datetime, str]]:
        """(sent_at, first 200 characters of final_message) for every row."""
        rows = await fetch_all(
            "SELECT sent_at, left(final_message, 200) AS message_head FROM deliveries"
        )
        return [(row["sent_at"], row["message_head"]) for row in rows]
