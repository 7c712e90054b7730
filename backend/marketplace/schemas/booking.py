# backend/marketplace/schemas/booking.py
"""
Booking schemas for the vendor marketplace.

Creation fields are optional on purpose: presence is validated by the
booking service, which answers with field-level errors in one shape for
missing input, unavailable vendors and conflicts alike.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import ConfigDict, Field, model_validator

from ..events.booking_events import Accepted, CounterOffered, Declined, VendorResponse
from ._strict_base import StrictModel, StrictRequestModel
from .availability import SuggestedWindowResponse


class BookingCreateRequest(StrictRequestModel):
    customer_id: Optional[str] = Field(None, description="Customer making the booking")
    service_id: Optional[str] = Field(None, description="Service being booked; resolves the vendor")
    vendor_id: Optional[str] = Field(None, description="Vendor, when no service is given")
    event_start: Optional[datetime] = Field(None, description="Vendor-local event start")
    event_end: Optional[datetime] = Field(
        None, description="Vendor-local event end; defaults to start plus two hours"
    )
    location: Optional[str] = Field(None, max_length=500)
    total_amount: Optional[Decimal] = Field(None, description="Agreed price")
    requirements: Optional[str] = Field(None, max_length=5000)
    special_instructions: Optional[str] = Field(None, max_length=5000)


class FieldErrorResponse(StrictModel):
    field: str
    message: str


class AlternativeWindowResponse(StrictModel):
    start: str
    end: str
    start_at: datetime
    end_at: datetime
    duration_hours: float


class BookingErrorResponse(StrictModel):
    errors: List[FieldErrorResponse]
    alternatives: List[AlternativeWindowResponse] = Field(default_factory=list)
    suggested_windows: List[SuggestedWindowResponse] = Field(default_factory=list)


class BookingResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    id: str
    customer_id: str
    vendor_id: str
    service_id: Optional[str] = None
    event_start: datetime
    event_end: Optional[datetime] = None
    booking_date: date
    status: str
    total_amount: float
    location: str
    requirements: Optional[str] = None
    special_instructions: Optional[str] = None
    counter_offer_amount: Optional[float] = None
    counter_offer_message: Optional[str] = None
    cancellation_reason: Optional[str] = None


class BookingListResponse(StrictModel):
    """Response for booking list endpoints."""

    bookings: List[BookingResponse]
    total: int
    page: int
    per_page: int


class ConflictCheckRequest(StrictRequestModel):
    vendor_id: Optional[str] = None
    event_start: Optional[datetime] = None
    event_end: Optional[datetime] = None


class SuggestAlternativesResponse(StrictModel):
    has_conflict: bool
    conflicting_booking_ids: List[str] = Field(default_factory=list)
    alternatives: List[AlternativeWindowResponse] = Field(default_factory=list)
    errors: List[FieldErrorResponse] = Field(default_factory=list)


class VendorResponseRequest(StrictRequestModel):
    vendor_id: str
    action: Literal["accept", "decline", "counter_offer"]
    counter_amount: Optional[Decimal] = Field(None, gt=0)
    counter_message: Optional[str] = Field(None, max_length=2000)
    reason: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _require_counter_amount(self) -> "VendorResponseRequest":
        if self.action == "counter_offer" and self.counter_amount is None:
            raise ValueError("counter_amount is required for a counter offer")
        return self

    def to_vendor_response(self) -> VendorResponse:
        if self.action == "accept":
            return Accepted()
        if self.action == "decline":
            return Declined(reason=self.reason)
        return CounterOffered(amount=self.counter_amount, message=self.counter_message)


class CancelBookingRequest(StrictRequestModel):
    actor_id: str
    reason: Optional[str] = Field(None, max_length=2000)


class CompleteBookingRequest(StrictRequestModel):
    vendor_id: str


class RescheduleBookingRequest(StrictRequestModel):
    customer_id: str
    event_start: Optional[datetime] = None
    event_end: Optional[datetime] = None
