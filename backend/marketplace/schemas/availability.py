# backend/marketplace/schemas/availability.py
"""Availability check request and response schemas."""

from typing import List, Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class AvailabilityCheckRequest(StrictRequestModel):
    """
    Clock values are sent as ``HH:MM`` strings.

    Everything is optional so missing input comes back as errors in the
    response body instead of a schema failure.
    """

    vendor_id: Optional[str] = Field(None, description="Vendor to check")
    date: Optional[str] = Field(None, description="Calendar date, YYYY-MM-DD")
    start_time: Optional[str] = Field(None, description="Requested start, HH:MM")
    end_time: Optional[str] = Field(None, description="Requested end, HH:MM")


class SuggestedWindowResponse(StrictModel):
    start: str
    end: str
    duration_hours: float


class AvailabilityCheckResponse(StrictModel):
    available: bool
    errors: List[str] = Field(default_factory=list)
    suggested_windows: List[SuggestedWindowResponse] = Field(default_factory=list)
