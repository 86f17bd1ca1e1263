"""
Schema for the delivery log.

One table, one row per generated-and-copied scout message. Offer status
timestamps are mutually exclusive: at most one of approved_at / on_hold_at /
cancelled_at is set, matching offer_status.
"""

from scout.db.helpers import execute_query
from scout.db.pool import db_pool
from scout.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

DELIVERIES_DDL = """
CREATE TABLE IF NOT EXISTS deliveries (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    sent_at         TIMESTAMPTZ NOT NULL,
    send_date       DATE NOT NULL,
    time_slot       TEXT NOT NULL CHECK (time_slot IN ('00-05', '06-11', '12-17', '18-23')),
    template_type   TEXT NOT NULL CHECK (template_type IN ('A', 'B')),
    final_message   TEXT NOT NULL,
    source_text     TEXT,
    student_id7     TEXT,
    university_name TEXT,
    gender          TEXT,
    last_login_at   TIMESTAMPTZ,
    offer_status    TEXT NOT NULL DEFAULT 'none'
                    CHECK (offer_status IN ('none', 'approved', 'on_hold', 'cancelled')),
    approved_at     TIMESTAMPTZ,
    on_hold_at      TIMESTAMPTZ,
    cancelled_at    TIMESTAMPTZ,
    notes           TEXT
)
"""

DELIVERIES_INDEXES = (
    "CREATE INDEX IF NOT EXISTS deliveries_sent_at_idx ON deliveries (sent_at DESC)",
    "CREATE INDEX IF NOT EXISTS deliveries_send_date_idx ON deliveries (send_date, time_slot, template_type)",
    "CREATE INDEX IF NOT EXISTS deliveries_student_id7_idx ON deliveries (student_id7)",
)


async def ensure_schema() -> None:
    """Create the deliveries table and its indexes if they do not exist."""
    async with db_pool.transaction() as conn:
        await execute_query(DELIVERIES_DDL, connection=conn)
        for statement in DELIVERIES_INDEXES:
            await execute_query(statement, connection=conn)
    logger.info("Deliveries schema ensured")
