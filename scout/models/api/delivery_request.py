"""
Delivery log API request models.
Used by routes for input validation.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CreateDeliveryRequest(BaseModel):
    """
    Request for recording a delivery.

    Required fields are declared optional so a missing one is reported as a
    400 with a readable message rather than a schema error.
    """

    sent_at: datetime | None = Field(None, description="When the message was sent")
    template_type: str | None = Field(None, description="Template used: A or B")
    final_message: str | None = Field(None, description="Full message text as sent")
    source_text: str | None = Field(None, description="Pasted profile the message was built from")
    student_id7: str | None = Field(None, description="7-digit student ID")
    last_login_at: datetime | None = Field(None, description="Student's last login")
    university_name: str | None = Field(None, description="University name")
    gender: str | None = Field(None, description="male / female / other / unknown")
    faculty_name: str | None = Field(None, description="Faculty (stored in notes)")
    department_name: str | None = Field(None, description="Department (stored in notes)")
    prefecture: str | None = Field(None, description="Prefecture (stored in notes)")
    graduation_year: str | None = Field(None, description="Graduation year, e.g. 2026卒 (stored in notes)")
    major: str | None = Field(None, description="Major (stored in notes)")


class UpdateDeliveryRequest(BaseModel):
    """Partial update; only fields present in the body are applied. Empty strings clear a field."""

    final_message: str | None = Field(None, description="New message text")
    student_id7: str | None = Field(None, description="New 7-digit student ID")
    university_name: str | None = Field(None, description="New university name")
    gender: str | None = Field(None, description="New gender")
    template_type: str | None = Field(None, description="New template type")
    faculty_name: str | None = Field(None, description="Faculty (notes)")
    department_name: str | None = Field(None, description="Department (notes)")
    prefecture: str | None = Field(None, description="Prefecture (notes)")
    graduation_year: str | None = Field(None, description="Graduation year (notes)")
    major: str | None = Field(None, description="Major (notes)")


class UpdateStatusRequest(BaseModel):
    """Request for changing the offer status."""

    status: str | None = Field(None, description="none / approved / on_hold / cancelled")
    set_at: datetime | None = Field(None, description="Status timestamp (default: now)")


class ImportDeliveriesRequest(BaseModel):
    """Admin bulk import payload."""

    records: list[Any] | None = Field(None, description="Delivery records to insert")
