"""
Admin API Routes
Staging-only maintenance endpoints.
"""

from fastapi import APIRouter, HTTPException, status

from scout.config import settings
from scout.db.helpers import DatabaseError
from scout.infrastructure.observability.logging import get_logger
from scout.models.api.delivery_request import ImportDeliveriesRequest
from scout.models.api.delivery_response import ImportDeliveriesResponse
from scout.services.delivery_service import DeliveryValidationError, import_deliveries

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/import-deliveries", response_model=ImportDeliveriesResponse)
async def import_delivery_records(request: ImportDeliveriesRequest):
    """Bulk-insert delivery records. Duplicates are skipped, bad records reported."""
    if not settings.is_staging():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="この機能はstaging環境でのみ利用可能です",
        )

    try:
        result = await import_deliveries(request.records or [])
    except DeliveryValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        logger.error("Delivery import failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="サーバーエラーが発生しました",
        )

    return ImportDeliveriesResponse(
        inserted=result.inserted,
        skipped=result.skipped,
        total=result.total,
        errors=result.errors,
    )
