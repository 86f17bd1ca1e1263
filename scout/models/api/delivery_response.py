"""
Delivery log API response models.
Used by routes for output formatting.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from scout.models.domain.delivery_domain import AnalyticsRow, Delivery


class DeliveryResponse(BaseModel):
    """One delivery record."""

    id: str = Field(..., description="Delivery ID")
    created_at: datetime = Field(..., description="When the record was created")
    sent_at: datetime = Field(..., description="When the message was sent")
    send_date: date = Field(..., description="JST calendar date of sent_at")
    time_slot: str = Field(..., description="JST hour bucket of sent_at")
    template_type: str = Field(..., description="A or B")
    final_message: str = Field(..., description="Message text")
    source_text: str | None = Field(None, description="Pasted profile")
    student_id7: str | None = Field(None, description="7-digit student ID")
    university_name: str | None = Field(None, description="University name")
    gender: str | None = Field(None, description="Gender")
    last_login_at: datetime | None = Field(None, description="Student's last login")
    offer_status: str = Field(..., description="none / approved / on_hold / cancelled")
    approved_at: datetime | None = Field(None, description="Set while approved")
    on_hold_at: datetime | None = Field(None, description="Set while on hold")
    cancelled_at: datetime | None = Field(None, description="Set while cancelled")
    notes: dict[str, Any] = Field(default_factory=dict, description="Supplementary fields")

    @classmethod
    def from_domain(cls, delivery: Delivery) -> "DeliveryResponse":
        return cls(
            id=delivery.id,
            created_at=delivery.created_at,
            sent_at=delivery.sent_at,
            send_date=delivery.send_date,
            time_slot=delivery.time_slot,
            template_type=delivery.template_type,
            final_message=delivery.final_message,
            source_text=delivery.source_text,
            student_id7=delivery.student_id7,
            university_name=delivery.university_name,
            gender=delivery.gender,
            last_login_at=delivery.last_login_at,
            offer_status=delivery.offer_status,
            approved_at=delivery.approved_at,
            on_hold_at=delivery.on_hold_at,
            cancelled_at=delivery.cancelled_at,
            notes=delivery.notes,
        )


class CreateDeliveryResponse(BaseModel):
    id: str = Field(..., description="ID of the new delivery")
    success: bool = Field(default=True)


class DeliveryListResponse(BaseModel):
    """A page of deliveries."""

    items: list[DeliveryResponse] = Field(..., description="Deliveries on this page")
    total: int = Field(..., description="Total matching deliveries")
    page: int = Field(..., description="Page number (1-based)")
    page_size: int = Field(..., description="Page size")


class DeleteDeliveryResponse(BaseModel):
    success: bool = Field(default=True)


class AnalyticsRowResponse(BaseModel):
    send_date: date = Field(..., description="JST send date")
    time_slot: str = Field(..., description="JST hour bucket")
    template_type: str = Field(..., description="A or B")
    count: int = Field(..., description="Number of deliveries")

    @classmethod
    def from_domain(cls, row: AnalyticsRow) -> "AnalyticsRowResponse":
        return cls(
            send_date=row.send_date,
            time_slot=row.time_slot,
            template_type=row.template_type,
            count=row.count,
        )


class AnalyticsResponse(BaseModel):
    """Delivery counts grouped by date x time slot x template."""

    rows: list[AnalyticsRowResponse] = Field(..., description="Grouped counts")


class ImportDeliveriesResponse(BaseModel):
    """Outcome of a bulk import."""

    success: bool = Field(default=True)
    inserted: int = Field(..., description="Records inserted")
    skipped: int = Field(..., description="Duplicates and invalid records")
    total: int = Field(..., description="Records received")
    errors: list[str] = Field(default_factory=list, description="First few per-record errors")
