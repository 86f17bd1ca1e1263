"""
Delivery log API Routes
CRUD, offer status changes and CSV export for the delivery log.
"""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from scout.db.helpers import DatabaseError
from scout.infrastructure.observability.logging import get_logger
from scout.models.api.delivery_request import (
    CreateDeliveryRequest,
    UpdateDeliveryRequest,
    UpdateStatusRequest,
)
from scout.models.api.delivery_response import (
    CreateDeliveryResponse,
    DeleteDeliveryResponse,
    DeliveryListResponse,
    DeliveryResponse,
)
from scout.models.domain.delivery_domain import DeliveryFilters
from scout.services import delivery_service
from scout.services.csv_export import CSV_MEDIA_TYPE
from scout.services.delivery_service import DeliveryNotFoundError, DeliveryValidationError

logger = get_logger(__name__)

router = APIRouter(prefix="/deliveries", tags=["deliveries"])

NOT_FOUND_DETAIL = "配信レコードが見つかりません"
SERVER_ERROR_DETAIL = "サーバーエラーが発生しました"


def delivery_filters(
    send_date_from: date | None = Query(None, description="Send date lower bound (JST)"),
    send_date_to: date | None = Query(None, description="Send date upper bound (JST)"),
    time_slot: str | None = Query(None, description="00-05 / 06-11 / 12-17 / 18-23"),
    template_type: str | None = Query(None, description="A or B"),
    student_id7: str | None = Query(None, description="Student ID substring"),
    last_login_from: datetime | None = Query(None, description="Last login lower bound"),
    last_login_to: datetime | None = Query(None, description="Last login upper bound"),
    offer_status: str | None = Query(None, description="Offer status"),
) -> DeliveryFilters:
    """Query-string filters shared by list and export."""
    return DeliveryFilters(
        send_date_from=send_date_from,
        send_date_to=send_date_to,
        time_slot=time_slot or None,
        template_type=template_type or None,
        student_id7=student_id7 or None,
        last_login_from=last_login_from,
        last_login_to=last_login_to,
        offer_status=offer_status or None,
    )


def _server_error(message: str, error: Exception, **context) -> HTTPException:
    logger.error(message, error=str(error), **context)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=SERVER_ERROR_DETAIL
    )


@router.get("", response_model=DeliveryListResponse)
async def list_deliveries(
    filters: DeliveryFilters = Depends(delivery_filters),
    page: int = Query(default=1, description="Page number (1-based)"),
    page_size: int = Query(default=50, description="Page size (max 50)"),
):
    """List deliveries, newest first."""
    try:
        items, total, page, page_size = await delivery_service.list_deliveries(
            filters, page, page_size
        )
    except DeliveryValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        raise _server_error("Error listing deliveries", e)

    return DeliveryListResponse(
        items=[DeliveryResponse.from_domain(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=CreateDeliveryResponse)
async def create_delivery(request: CreateDeliveryRequest):
    """Record a delivery; missing fields are extracted from source_text."""
    try:
        delivery = await delivery_service.create_delivery(**request.model_dump())
    except DeliveryValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        raise _server_error("Error creating delivery", e)

    return CreateDeliveryResponse(id=delivery.id)


# Registered before /{delivery_id} so "export.csv" is not taken for an id.
@router.get("/export.csv")
async def export_deliveries(filters: DeliveryFilters = Depends(delivery_filters)):
    """Download matching deliveries as CSV (UTF-8 with BOM, CRLF)."""
    try:
        filename, content = await delivery_service.export_deliveries_csv(filters)
    except DeliveryValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        raise _server_error("Error exporting deliveries", e)

    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery(delivery_id: str):
    try:
        delivery = await delivery_service.get_delivery(delivery_id)
    except DeliveryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    except DatabaseError as e:
        raise _server_error("Error loading delivery", e, delivery_id=delivery_id)

    return DeliveryResponse.from_domain(delivery)


@router.patch("/{delivery_id}", response_model=DeliveryResponse)
async def update_delivery(delivery_id: str, request: UpdateDeliveryRequest):
    """Partially update a delivery. Only fields present in the body are applied."""
    try:
        delivery = await delivery_service.update_delivery(
            delivery_id, request.model_dump(exclude_unset=True)
        )
    except DeliveryValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DeliveryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    except DatabaseError as e:
        raise _server_error("Error updating delivery", e, delivery_id=delivery_id)

    return DeliveryResponse.from_domain(delivery)


@router.delete("/{delivery_id}", response_model=DeleteDeliveryResponse)
async def delete_delivery(delivery_id: str):
    try:
        await delivery_service.delete_delivery(delivery_id)
    except DeliveryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    except DatabaseError as e:
        raise _server_error("Error deleting delivery", e, delivery_id=delivery_id)

    return DeleteDeliveryResponse()


@router.patch("/{delivery_id}/status", response_model=DeliveryResponse)
async def update_delivery_status(delivery_id: str, request: UpdateStatusRequest):
    """Change the offer status; the other status timestamps are cleared."""
    try:
        delivery = await delivery_service.set_offer_status(
            delivery_id, request.status, request.set_at
        )
    except DeliveryValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DeliveryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    except DatabaseError as e:
        raise _server_error("Error updating delivery status", e, delivery_id=delivery_id)

    return DeliveryResponse.from_domain(delivery)
