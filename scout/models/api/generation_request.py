"""
Generation API request models.
"""

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Request for a single generation mode."""

    mode: str | None = Field(None, description="title / opening / b_profile_line")
    paste_text: str | None = Field(None, description="Pasted profile (title, opening)")
    faculty_name: str | None = Field(None, description="Faculty name (b_profile_line)")


class ScoutGenerateRequest(BaseModel):
    """Request for the full scout message pipeline."""

    paste_text: str | None = Field(None, description="Pasted profile text")
