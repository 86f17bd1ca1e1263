"""
Analytics API Routes
"""

from datetime import date

from fastapi import APIRouter, HTTPException, Query, status

from scout.db.helpers import DatabaseError
from scout.infrastructure.observability.logging import get_logger
from scout.models.api.delivery_response import AnalyticsResponse, AnalyticsRowResponse
from scout.services.delivery_service import DeliveryValidationError, delivery_analytics

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _parse_date(value: str | None, name: str) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{name} の形式が不正です（YYYY-MM-DD）",
        )


@router.get("/deliveries", response_model=AnalyticsResponse)
async def delivery_counts(
    send_date_from: str | None = Query(None, description="Required, YYYY-MM-DD"),
    send_date_to: str | None = Query(None, description="Required, YYYY-MM-DD"),
):
    """Delivery counts by send date x time slot x template within a mandatory date range."""
    date_from = _parse_date(send_date_from, "send_date_from")
    date_to = _parse_date(send_date_to, "send_date_to")

    try:
        rows = await delivery_analytics(date_from, date_to)
    except DeliveryValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        logger.error("Error loading delivery analytics", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="サーバーエラーが発生しました",
        )

    return AnalyticsResponse(rows=[AnalyticsRowResponse.from_domain(row) for row in rows])
