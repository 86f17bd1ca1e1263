"""
CSV rendering of the delivery log.
RFC 4180 quoting, CRLF row terminators and a leading UTF-8 BOM so the file
opens correctly in Excel.
"""

import csv
import io
from collections.abc import Iterable
from datetime import datetime

from scout.models.domain.delivery_domain import Delivery, offer_status_label
from scout.models.domain.scout_domain import gender_label
from scout.utils.time_utils import format_jst_datetime_for_csv, format_jst_for_filename

CSV_BOM = "\ufeff"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"

CSV_HEADERS: tuple[str, ...] = (
    "配信日時(JST)",
    "配信日",
    "時間帯",
    "テンプレ",
    "学生ID(7桁)",
    "大学名",
    "性別",
    "最終ログイン日時(JST)",
    "オファー状態",
    "状態日付(JST)",
    "スカウト文",
)


def _row(delivery: Delivery) -> list[str]:
    return [
        format_jst_datetime_for_csv(delivery.sent_at),
        delivery.send_date.isoformat(),
        delivery.time_slot,
        delivery.template_type,
        delivery.student_id7 or "",
        delivery.university_name or "",
        gender_label(delivery.gender) if delivery.gender else "",
        format_jst_datetime_for_csv(delivery.last_login_at),
        offer_status_label(delivery.offer_status),
        format_jst_datetime_for_csv(delivery.status_timestamp()),
        delivery.final_message,
    ]


def render_deliveries_csv(deliveries: Iterable[Delivery]) -> str:
    """BOM + header + one CRLF-terminated row per delivery."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(CSV_HEADERS)
    for delivery in deliveries:
        writer.writerow(_row(delivery))
    return CSV_BOM + buffer.getvalue()


def export_filename(now: datetime | None = None) -> str:
    return f"deliveries_{format_jst_for_filename(now)}.csv"
