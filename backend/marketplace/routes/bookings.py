# backend/marketplace/routes/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to the booking, availability and conflict
services. Callers are identified by the ids in the request body;
authentication happens upstream.

Endpoints:
    POST /check-availability - Is the vendor open for a time range
    POST /suggest-alternatives - Conflict check plus free windows
    GET / - List a vendor's or customer's bookings
    POST / - Create a pending booking
    GET /{booking_id} - Booking details
    POST /{booking_id}/respond - Vendor accepts, declines or counter offers
    POST /{booking_id}/cancel - Customer or vendor cancels
    POST /{booking_id}/complete - Vendor marks the event done
    PATCH /{booking_id}/schedule - Customer moves a pending booking
"""

import asyncio
import logging
from typing import NoReturn, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from ..api.dependencies import (
    get_availability_checker,
    get_booking_service,
    get_conflict_checker,
)
from ..core.exceptions import HTTP_422_UNPROCESSABLE, DomainException
from ..schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    SuggestedWindowResponse,
)
from ..schemas.booking import (
    AlternativeWindowResponse,
    BookingCreateRequest,
    BookingErrorResponse,
    BookingListResponse,
    BookingResponse,
    CancelBookingRequest,
    CompleteBookingRequest,
    ConflictCheckRequest,
    FieldErrorResponse,
    RescheduleBookingRequest,
    SuggestAlternativesResponse,
    VendorResponseRequest,
)
from ..models.booking import BookingStatus
from ..services.availability_checker import AvailabilityChecker
from ..services.booking_service import BookingCreationResult, BookingRequest, BookingService
from ..services.conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _rejection(result: BookingCreationResult) -> JSONResponse:
    body = BookingErrorResponse(
        errors=[FieldErrorResponse(**error.to_dict()) for error in result.errors],
        alternatives=[AlternativeWindowResponse(**alt.to_dict()) for alt in result.alternatives],
        suggested_windows=[
            SuggestedWindowResponse(**window.to_dict()) for window in result.suggested_windows
        ],
    )
    return JSONResponse(status_code=HTTP_422_UNPROCESSABLE, content=body.model_dump(mode="json"))


# ============================================================================
# Static routes (no path parameters)
# ============================================================================


@router.post("/check-availability", response_model=AvailabilityCheckResponse)
async def check_availability(
    check_data: AvailabilityCheckRequest = Body(...),
    availability_checker: AvailabilityChecker = Depends(get_availability_checker),
) -> AvailabilityCheckResponse:
    """Check whether the vendor has an open window covering the requested range."""
    result = await asyncio.to_thread(
        availability_checker.check_availability,
        check_data.vendor_id,
        check_data.date,
        check_data.start_time,
        check_data.end_time,
    )
    return AvailabilityCheckResponse(
        available=result.available,
        errors=result.errors,
        suggested_windows=[SuggestedWindowResponse(**w.to_dict()) for w in result.suggested_windows],
    )


@router.post("/suggest-alternatives", response_model=SuggestAlternativesResponse)
async def suggest_alternatives(
    check_data: ConflictCheckRequest = Body(...),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> SuggestAlternativesResponse:
    """
    Report conflicts for a requested window and propose free windows.

    Alternatives are only computed when the request actually conflicts.
    """

    def _evaluate() -> SuggestAlternativesResponse:
        result = conflict_checker.check_conflict(
            check_data.vendor_id, check_data.event_start, check_data.event_end
        )
        alternatives = []
        if result.has_conflict:
            alternatives = conflict_checker.suggest_alternatives(
                check_data.vendor_id, check_data.event_start, check_data.event_end
            )
        return SuggestAlternativesResponse(
            has_conflict=result.has_conflict,
            conflicting_booking_ids=[booking.id for booking in result.conflicts],
            alternatives=[AlternativeWindowResponse(**alt.to_dict()) for alt in alternatives],
            errors=[FieldErrorResponse(**error.to_dict()) for error in result.errors],
        )

    return await asyncio.to_thread(_evaluate)


@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    vendor_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """
    List the bookings of one vendor or one customer.

    Exactly one of vendor_id and customer_id must be given.
    """
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_bookings,
            vendor_id=vendor_id,
            customer_id=customer_id,
            status=status_filter,
        )
    except DomainException as e:
        handle_domain_exception(e)

    start = (page - 1) * per_page
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings[start : start + per_page]],
        total=len(bookings),
        page=page,
        per_page=per_page,
    )


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={HTTP_422_UNPROCESSABLE: {"model": BookingErrorResponse}},
)
async def create_booking(
    booking_data: BookingCreateRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> Union[BookingResponse, JSONResponse]:
    """
    Create a pending booking.

    Rejections (missing fields, vendor unavailable, conflicting booking)
    come back as 422 with field errors and, where relevant, suggestions.
    """
    try:
        result = await asyncio.to_thread(
            booking_service.create_booking, BookingRequest(**booking_data.model_dump())
        )
    except DomainException as e:
        handle_domain_exception(e)

    if not result.success:
        return _rejection(result)
    return BookingResponse.model_validate(result.booking)


# ============================================================================
# Dynamic routes (booking_id path parameter)
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/respond", response_model=BookingResponse)
async def respond_to_booking(
    booking_id: str,
    response_data: VendorResponseRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Vendor accepts, declines or counter offers a booking."""
    try:
        booking = await asyncio.to_thread(
            booking_service.respond_to_booking,
            booking_id,
            response_data.vendor_id,
            response_data.to_vendor_response(),
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    cancel_data: CancelBookingRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking, booking_id, cancel_data.actor_id, cancel_data.reason
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str,
    complete_data: CompleteBookingRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.complete_booking, booking_id, complete_data.vendor_id
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{booking_id}/schedule",
    response_model=BookingResponse,
    responses={HTTP_422_UNPROCESSABLE: {"model": BookingErrorResponse}},
)
async def reschedule_booking(
    booking_id: str,
    schedule_data: RescheduleBookingRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> Union[BookingResponse, JSONResponse]:
    """Move a pending booking, re-running availability and conflict checks."""
    try:
        result = await asyncio.to_thread(
            booking_service.reschedule_booking,
            booking_id,
            schedule_data.customer_id,
            schedule_data.event_start,
            schedule_data.event_end,
        )
    except DomainException as e:
        handle_domain_exception(e)

    if not result.success:
        return _rejection(result)
    return BookingResponse.model_validate(result.booking)
