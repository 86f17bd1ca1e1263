"""
Generation API response models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from scout.models.domain.scout_domain import ExtractedFields, ScoutMessage


class GenerateResponse(BaseModel):
    """Single-mode result; exactly one field is set."""

    title: str | None = Field(None, description="Generated title (mode=title)")
    opening_message: str | None = Field(None, description="Generated opening (mode=opening)")
    profile_line: str | None = Field(None, description="Generated sentence (mode=b_profile_line)")


class ExtractedFieldsResponse(BaseModel):
    student_id7: str | None = Field(None, description="7-digit student ID")
    university_name: str | None = Field(None, description="University name")
    faculty_name: str | None = Field(None, description="Faculty name")
    department_name: str | None = Field(None, description="Department name")
    prefecture: str | None = Field(None, description="Prefecture")
    graduation_year: str | None = Field(None, description="Graduation year, NNNN卒")
    gender: str = Field(..., description="male / female / other / unknown")
    last_login_at: datetime | None = Field(None, description="Last login instant")

    @classmethod
    def from_domain(cls, fields: ExtractedFields) -> "ExtractedFieldsResponse":
        return cls(**fields.to_dict())


class ScoutMessageResponse(BaseModel):
    """Full pipeline result."""

    pattern: str = Field(..., description="A or B")
    pr_char_count: int = Field(..., description="Code points in the self-PR candidate")
    opening_char_count: int = Field(..., description="Code points in the reflowed opening")
    title: str | None = Field(None, description="Generated title (pattern A)")
    opening_message: str | None = Field(None, description="Opening as generated, before reflow")
    profile_line: str | None = Field(None, description="Generated profile line (pattern B)")
    message: str = Field(..., description="Final assembled message")
    fields: ExtractedFieldsResponse = Field(..., description="Fields extracted from the paste")

    @classmethod
    def from_domain(cls, result: ScoutMessage) -> "ScoutMessageResponse":
        return cls(
            pattern=result.pattern,
            pr_char_count=result.pr_char_count,
            opening_char_count=result.opening_char_count,
            title=result.title,
            opening_message=result.opening_message,
            profile_line=result.profile_line,
            message=result.message,
            fields=ExtractedFieldsResponse.from_domain(result.fields),
        )
