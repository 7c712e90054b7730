# backend/marketplace/services/booking_service.py
"""
Booking Service for the vendor marketplace.

Transactional entry point for booking writes:
- Creating bookings after availability and conflict checks pass
- Rescheduling pending bookings with the same checks
- Vendor responses (accept, decline, counter offer)
- Cancellation and completion

Writes are serialized per vendor and per calendar date the booking touches,
with the distributed booking lock plus a database advisory lock. Two
overlapping bookings always share a touched date, so they cannot both pass
the conflict check. Either the booking row is written
together with its checks, or nothing is.

Notifications are queued after commit. A failure to queue is logged and
never undoes the booking.
"""

from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
import logging
from typing import Any, Iterator, List, Optional

from sqlalchemy.orm import Session

from ..core.booking_lock import booking_lock_sync
from ..core.config import settings
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    FieldError,
    ForbiddenException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
    VendorUnavailableException,
)
from ..events.booking_events import (
    BookingNotification,
    CounterOffered,
    Declined,
    VendorResponse,
    booking_cancelled_notification,
    booking_completed_notification,
    booking_created_notification,
    notification_for_response,
    status_for_response,
)
from ..events.publisher import EventPublisher
from ..models.booking import BLOCKING_STATUSES, Booking, BookingStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from ..utils.time_utils import default_event_end, is_offset_aware, span_dates
from .availability_checker import AvailabilityChecker, SuggestedWindow
from .base import BaseService
from .conflict_checker import LOCAL_TIME_REQUIRED, AlternativeWindow, ConflictChecker

logger = logging.getLogger(__name__)

BLANK = "can't be blank"


@dataclass
class BookingRequest:
    """
    Inbound booking request.

    Either ``service_id`` or ``vendor_id`` identifies the vendor; the
    service wins when both are given.
    """

    customer_id: Optional[str] = None
    service_id: Optional[str] = None
    vendor_id: Optional[str] = None
    event_start: Optional[datetime] = None
    event_end: Optional[datetime] = None
    location: Optional[str] = None
    total_amount: Any = None
    requirements: Optional[str] = None
    special_instructions: Optional[str] = None


@dataclass
class BookingCreationResult:
    """
    Structured outcome of a booking write.

    Exactly one of ``booking`` and ``errors`` is populated. Conflict
    rejections carry free alternatives; availability rejections carry the
    vendor's open windows for the date.
    """

    booking: Optional[Booking] = None
    errors: List[FieldError] = field(default_factory=list)
    alternatives: List[AlternativeWindow] = field(default_factory=list)
    suggested_windows: List[SuggestedWindow] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.booking is not None and not self.errors

    @property
    def error_messages(self) -> List[str]:
        return [str(error) for error in self.errors]


def _to_amount(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class BookingService(BaseService):
    """
    Service layer for booking writes.

    The availability checker and conflict checker share this service's
    session, so every check runs inside the same database transaction as
    the write it guards.
    """

    def __init__(
        self,
        db: Session,
        availability_checker: Optional[AvailabilityChecker] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        repository: Optional[BookingRepository] = None,
        conflict_repository: Optional[ConflictCheckerRepository] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.conflict_repository = (
            conflict_repository or RepositoryFactory.create_conflict_checker_repository(db)
        )
        self.availability_checker = availability_checker or AvailabilityChecker(db)
        self.conflict_checker = conflict_checker or ConflictChecker(
            db, repository=self.conflict_repository
        )
        self.publisher = publisher or EventPublisher()

    # Validation

    def _schedule_errors(
        self, event_start: Optional[datetime], event_end: Optional[datetime], current: datetime
    ) -> List[FieldError]:
        """Checks on the requested times alone. Event times are naive vendor-local values."""
        if event_start is None:
            return [FieldError("event_date", BLANK)]

        errors = []
        start_aware = is_offset_aware(event_start)
        if start_aware:
            errors.append(FieldError("event_date", LOCAL_TIME_REQUIRED))
        elif event_start <= current:
            errors.append(FieldError("event_date", "must be in the future"))

        if event_end is not None:
            if is_offset_aware(event_end):
                errors.append(FieldError("event_end_date", LOCAL_TIME_REQUIRED))
            elif not start_aware and event_end <= event_start:
                errors.append(FieldError("event_end_date", "must be after event_date"))
        return errors

    def validate_request(
        self, request: BookingRequest, now: Optional[datetime] = None
    ) -> List[FieldError]:
        """Presence, timing and numeric checks. Touches no storage."""
        errors = []
        if not request.customer_id:
            errors.append(FieldError("customer_id", BLANK))
        if not request.service_id and not request.vendor_id:
            errors.append(FieldError("service_id", BLANK))
        errors.extend(
            self._schedule_errors(request.event_start, request.event_end, now or datetime.now())
        )
        if not request.location or not request.location.strip():
            errors.append(FieldError("event_location", BLANK))

        if request.total_amount is None or request.total_amount == "":
            errors.append(FieldError("total_amount", BLANK))
        else:
            amount = _to_amount(request.total_amount)
            if amount is None or not amount.is_finite():
                errors.append(FieldError("total_amount", "is not a number"))
            elif amount <= 0:
                errors.append(FieldError("total_amount", "must be greater than 0"))
        return errors

    def _resolve_vendor_id(self, request: BookingRequest) -> Optional[str]:
        if request.service_id:
            service = self.conflict_repository.get_active_service(request.service_id)
            return service.vendor_id if service else None
        return request.vendor_id

    def _effective_end(self, start: datetime, end: Optional[datetime]) -> datetime:
        return default_event_end(start, end, settings.default_booking_duration_minutes)

    @contextmanager
    def _lock_vendor_days(self, vendor_id: str, days: List[date]) -> Iterator[None]:
        """
        Hold the booking lock for every date in ``days``, earliest first.

        Entered outside the transaction; the advisory locks for the same
        dates are taken inside it.
        """
        with ExitStack() as stack:
            for day in sorted(days):
                stack.enter_context(booking_lock_sync(vendor_id, day))
            yield

    def _lock_vendor_days_in_transaction(self, vendor_id: str, days: List[date]) -> None:
        for day in sorted(days):
            self.repository.lock_vendor_day(vendor_id, day)

    def _touched_days(self, start: datetime, end: Optional[datetime]) -> List[date]:
        return span_dates(start, self._effective_end(start, end))

    def _ensure_bookable(self, booking: Booking, exclude_booking_id: Optional[str] = None) -> None:
        """
        Run the availability check, then the conflict check.

        Raises:
            VendorUnavailableException: No open window contains the booking
            BookingConflictException: A blocking booking overlaps it
        """
        end = self._effective_end(booking.event_start, booking.event_end)
        if not self.availability_checker.covers(booking.vendor_id, booking.event_start, end):
            raise VendorUnavailableException()

        result = self.conflict_checker.check_conflict(
            booking.vendor_id, booking.event_start, end, exclude_booking_id
        )
        if result.has_conflict:
            raise BookingConflictException(
                details={"conflicting_booking_ids": [b.id for b in result.conflicts]}
            )

    def _publish(self, notification: BookingNotification) -> None:
        try:
            self.publisher.publish(notification)
        except Exception as e:
            prometheus_metrics.record_notification_outcome(notification.type, "enqueue_failed")
            self.logger.error(
                f"Failed to queue {notification.type} notification for "
                f"user {notification.recipient_id}: {str(e)}"
            )

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self, request: BookingRequest, now: Optional[datetime] = None
    ) -> BookingCreationResult:
        """
        Create a pending booking if the vendor is available and free.

        Args:
            request: The inbound booking request
            now: Vendor-local current time (defaults to the clock)

        Returns:
            BookingCreationResult with the booking or the field errors

        Raises:
            BookingLockTimeoutException: If another write holds the vendor day too long
            ServiceException: If the database fails
        """
        errors = self.validate_request(request, now)
        if errors:
            prometheus_metrics.record_booking_decision("rejected_validation")
            self.logger.info(f"Booking request rejected: {', '.join(map(str, errors))}")
            return BookingCreationResult(errors=errors)

        vendor_id = self._resolve_vendor_id(request)
        if not vendor_id:
            self.db.rollback()
            prometheus_metrics.record_booking_decision("rejected_validation")
            return BookingCreationResult(errors=[FieldError("service_id", "is not available")])

        event_start = request.event_start
        day = event_start.date()
        locked_days = self._touched_days(event_start, request.event_end)
        booking = None

        try:
            with self._lock_vendor_days(vendor_id, locked_days):
                with self.transaction():
                    self._lock_vendor_days_in_transaction(vendor_id, locked_days)
                    booking = Booking(
                        customer_id=request.customer_id,
                        vendor_id=vendor_id,
                        service_id=request.service_id,
                        event_start=event_start,
                        event_end=request.event_end,
                        status=BookingStatus.PENDING,
                        total_amount=_to_amount(request.total_amount),
                        location=request.location.strip(),
                        requirements=request.requirements,
                        special_instructions=request.special_instructions,
                    )
                    self._ensure_bookable(booking)
                    self.repository.add(booking)
        except VendorUnavailableException as exc:
            prometheus_metrics.record_booking_decision("rejected_unavailable")
            self.logger.info(f"Vendor {vendor_id} unavailable at {event_start}")
            return BookingCreationResult(
                errors=[FieldError(**e) for e in exc.field_errors],
                suggested_windows=self.availability_checker.get_suggested_windows(vendor_id, day),
            )
        except BookingConflictException as exc:
            prometheus_metrics.record_booking_decision("rejected_conflict")
            self.logger.warning(f"Booking for vendor {vendor_id} at {event_start} conflicts")
            return BookingCreationResult(
                errors=[FieldError(**e) for e in exc.field_errors],
                alternatives=self.conflict_checker.suggest_alternatives(
                    vendor_id, event_start, request.event_end
                ),
            )

        prometheus_metrics.record_booking_decision("created")
        self.log_operation("create_booking", booking_id=booking.id, vendor_id=vendor_id)
        self._publish(booking_created_notification(booking))
        return BookingCreationResult(booking=booking)

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self,
        booking_id: str,
        customer_id: str,
        event_start: Optional[datetime],
        event_end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> BookingCreationResult:
        """
        Move a pending booking to a new window, re-running both checks.

        The booking itself is excluded from the conflict check so an
        unchanged window stays valid. Changes close
        ``modification_notice_hours`` before the current event start.

        Raises:
            ForbiddenException: Caller is not the booking's customer
            BusinessRuleException: Booking is not pending or too close to the event
        """
        current = now or datetime.now()
        errors = self._schedule_errors(event_start, event_end, current)
        if errors:
            return BookingCreationResult(errors=errors)

        booking = self.get_booking(booking_id)
        if booking.customer_id != customer_id:
            raise ForbiddenException("Only the booking's customer can reschedule it")
        if booking.status != BookingStatus.PENDING.value:
            raise BusinessRuleException(
                f"Only pending bookings can be rescheduled (status: {booking.status})"
            )
        if booking.event_start - current <= timedelta(hours=settings.modification_notice_hours):
            raise BusinessRuleException(
                f"Bookings can only be changed more than "
                f"{settings.modification_notice_hours} hours before the event",
                code="MODIFICATION_WINDOW_CLOSED",
            )

        vendor_id = booking.vendor_id
        locked_days = self._touched_days(event_start, event_end)
        try:
            with self._lock_vendor_days(vendor_id, locked_days):
                with self.transaction():
                    self._lock_vendor_days_in_transaction(vendor_id, locked_days)
                    locked = self._load_for_update(booking_id)
                    locked.reschedule(event_start, event_end)
                    self._ensure_bookable(locked, exclude_booking_id=booking_id)
                    self.repository.flush()
        except (VendorUnavailableException, BookingConflictException) as exc:
            self.logger.info(f"Reschedule of booking {booking_id} rejected: {exc.message}")
            return BookingCreationResult(errors=[FieldError(**e) for e in exc.field_errors])

        self.log_operation("reschedule_booking", booking_id=booking_id)
        return BookingCreationResult(booking=locked)

    # Status transitions

    def _transition(self, booking: Booking, target: BookingStatus) -> None:
        """
        Apply a lifecycle transition.

        A booking entering the blocking set from outside it is re-checked
        for conflicts first.
        """
        if not booking.can_transition_to(target):
            raise InvalidStatusTransitionException(booking.id, booking.status, target.value)
        if not booking.is_blocking and target.value in BLOCKING_STATUSES:
            result = self.conflict_checker.check_conflict(
                booking.vendor_id, booking.event_start, booking.event_end, booking.id
            )
            if result.has_conflict:
                raise BookingConflictException()
        booking.transition_to(target)

    def _load_for_update(self, booking_id: str) -> Booking:
        booking = self.repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking with id {booking_id} not found")
        return booking

    @BaseService.measure_operation("respond_to_booking")
    def respond_to_booking(
        self, booking_id: str, vendor_id: str, response: VendorResponse
    ) -> Booking:
        """
        Record the vendor's answer to a pending or counter-offered booking.

        Raises:
            NotFoundException: Unknown booking
            ForbiddenException: Vendor does not own the booking
            ValidationException: Counter offer amount is not positive
            InvalidStatusTransitionException: Booking can no longer be answered
        """
        if isinstance(response, CounterOffered):
            amount = _to_amount(response.amount)
            if amount is None or amount <= 0:
                error = FieldError("counter_amount", "must be greater than 0")
                raise ValidationException(
                    "Counter offer amount must be greater than 0",
                    details={"errors": [error.to_dict()]},
                )

        with self.transaction():
            booking = self._load_for_update(booking_id)
            if booking.vendor_id != vendor_id:
                raise ForbiddenException("Only the booked vendor can respond to this booking")

            self._transition(booking, status_for_response(response))
            booking.responded_at = datetime.now(timezone.utc)
            if isinstance(response, CounterOffered):
                booking.counter_offer_amount = _to_amount(response.amount)
                booking.counter_offer_message = response.message
            elif isinstance(response, Declined) and response.reason:
                booking.cancellation_reason = response.reason
            self.repository.flush()

        self.log_operation("respond_to_booking", booking_id=booking_id, status=booking.status)
        self._publish(notification_for_response(booking, response))
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        actor_id: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Cancel a booking on behalf of its customer or vendor.

        Cancellation closes ``cancellation_notice_hours`` before the event.
        """
        current = now or datetime.now()
        with self.transaction():
            booking = self._load_for_update(booking_id)
            if actor_id not in (booking.customer_id, booking.vendor_id):
                raise ForbiddenException("Only the booking's customer or vendor can cancel it")
            if booking.event_start - current <= timedelta(hours=settings.cancellation_notice_hours):
                raise BusinessRuleException(
                    f"Bookings can only be cancelled more than "
                    f"{settings.cancellation_notice_hours} hours before the event",
                    code="CANCELLATION_WINDOW_CLOSED",
                )

            self._transition(booking, BookingStatus.CANCELLED)
            booking.cancelled_at = datetime.now(timezone.utc)
            booking.cancelled_by_id = actor_id
            booking.cancellation_reason = reason
            self.repository.flush()

        self.log_operation("cancel_booking", booking_id=booking_id, cancelled_by=actor_id)
        self._publish(booking_cancelled_notification(booking, actor_id))
        return booking

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, booking_id: str, vendor_id: str) -> Booking:
        with self.transaction():
            booking = self._load_for_update(booking_id)
            if booking.vendor_id != vendor_id:
                raise ForbiddenException("Only the booked vendor can complete this booking")
            self._transition(booking, BookingStatus.COMPLETED)
            booking.completed_at = datetime.now(timezone.utc)
            self.repository.flush()

        self.log_operation("complete_booking", booking_id=booking_id)
        self._publish(booking_completed_notification(booking))
        return booking

    # Reads

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking with id {booking_id} not found")
        return booking

    def list_bookings(
        self,
        vendor_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Booking]:
        """
        Bookings of exactly one party, earliest event first.

        Raises:
            ValidationException: Neither or both of vendor_id and customer_id given
        """
        if bool(vendor_id) == bool(customer_id):
            raise ValidationException("Provide exactly one of vendor_id or customer_id")
        status_value = status.value if isinstance(status, BookingStatus) else status
        if vendor_id:
            return self.get_vendor_bookings(vendor_id, status_value)
        return self.get_customer_bookings(customer_id, status_value)

    def get_vendor_bookings(self, vendor_id: str, status: Optional[str] = None) -> List[Booking]:
        return self.repository.get_for_vendor(vendor_id, status)

    def get_customer_bookings(self, customer_id: str, status: Optional[str] = None) -> List[Booking]:
        return self.repository.get_for_customer(customer_id, status)
