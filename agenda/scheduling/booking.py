"""Booking validation and cancellation.

``validate_booking`` is the only place a booking request becomes an
``Appointment``. It is a pure decision over the request and an appointment
snapshot: it performs no persistence and returns rejections as values.

The non-overlap guarantee only holds if callers serialize writes: validate
against the freshest snapshot and commit before the next booking is
validated. Two writers validating against the same stale snapshot can both
succeed and overlap.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Iterable

from agenda.core import config
from agenda.scheduling import catalog
from agenda.scheduling.availability import is_slot_free, is_successor_free
from agenda.scheduling.calendar import is_closed_day, parse_date, slot_hour, successor_slot
from agenda.scheduling.records import APPOINTMENT_STATUS_OCCUPIED, Actor, Appointment

logger = logging.getLogger(__name__)


class BookingError(Enum):
    UNKNOWN_SERVICE = ('unknown_service', 'This service is not offered.')
    INVALID_INPUT = ('invalid_input', 'The date or time could not be understood.')
    PAST_DATE = ('past_date', 'Appointments cannot be booked on past dates.')
    CLOSED_DAY = ('closed_day', 'We are closed on this day. Please choose another date.')
    OUT_OF_HOURS = ('out_of_hours', 'This time is outside business hours.')
    SLOT_TAKEN = ('slot_taken', 'This time is already booked.')
    SUCCESSOR_UNAVAILABLE = (
        'successor_unavailable',
        'This service needs the following hour too, and it is not available.',
    )

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message


@dataclass(frozen=True)
class BusinessHours:
    open_hour: int = 7
    close_hour: int = 19
    closed_weekday: int = 0

    @classmethod
    def from_config(cls) -> 'BusinessHours':
        return cls(
            open_hour=config.BUSINESS_OPEN_HOUR,
            close_hour=config.BUSINESS_CLOSE_HOUR,
            closed_weekday=config.CLOSED_WEEKDAY,
        )

    def contains(self, hour: int) -> bool:
        return self.open_hour <= hour < self.close_hour


@dataclass(frozen=True)
class BookingRequest:
    actor: Actor
    date: date | str
    start_slot: str
    service_id: str


@dataclass(frozen=True)
class BookingResult:
    appointment: Appointment | None = None
    error: BookingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class _Rejected(Exception):
    def __init__(self, error: BookingError) -> None:
        super().__init__(error.message)
        self.error = error


def _new_appointment_id() -> str:
    return uuid.uuid4().hex


def _check(request: BookingRequest, appointments: list[Appointment], hours: BusinessHours, today: date | None):
    try:
        service = catalog.lookup(request.service_id)
    except catalog.UnknownService as exc:
        raise _Rejected(BookingError.UNKNOWN_SERVICE) from exc

    try:
        day = parse_date(request.date)
    except ValueError as exc:
        raise _Rejected(BookingError.INVALID_INPUT) from exc

    if is_closed_day(day, hours.closed_weekday):
        raise _Rejected(BookingError.CLOSED_DAY)

    if today is not None and day < parse_date(today):
        raise _Rejected(BookingError.PAST_DATE)

    try:
        start_hour = slot_hour(request.start_slot)
    except ValueError as exc:
        raise _Rejected(BookingError.INVALID_INPUT) from exc

    if not hours.contains(start_hour):
        raise _Rejected(BookingError.OUT_OF_HOURS)

    if not is_slot_free(day, request.start_slot, appointments):
        raise _Rejected(BookingError.SLOT_TAKEN)

    current = request.start_slot
    for _ in range(service.duration_slots - 1):
        if not is_successor_free(day, current, appointments, hours.close_hour):
            raise _Rejected(BookingError.SUCCESSOR_UNAVAILABLE)
        current = successor_slot(current)

    return service, day


def validate_booking(
    request: BookingRequest,
    appointments: Iterable[Appointment],
    hours: BusinessHours | None = None,
    today: date | None = None,
    id_factory: Callable[[], str] | None = None,
) -> BookingResult:
    """Validate ``request`` against ``appointments`` and build the new appointment.

    Checks run in a fixed order and the first failure wins: unknown service,
    unparseable date, closed day, past date (only when ``today`` is given),
    unparseable slot, out of hours, slot taken, and for multi-slot services
    successor unavailable.

    On success the service price is copied into ``total_price`` so later
    catalog changes never touch existing appointments.
    """
    hours = hours or BusinessHours.from_config()
    snapshot = list(appointments)

    try:
        service, day = _check(request, snapshot, hours, today)
    except _Rejected as rejection:
        logger.info(
            'Booking rejected (%s): actor=%s date=%s slot=%s service=%s',
            rejection.error.code,
            request.actor.id,
            request.date,
            request.start_slot,
            request.service_id,
        )
        return BookingResult(error=rejection.error)

    end_slot = request.start_slot
    for _ in range(service.duration_slots):
        end_slot = successor_slot(end_slot)

    appointment = Appointment(
        id=(id_factory or _new_appointment_id)(),
        actor_id=request.actor.id,
        actor_name=request.actor.name,
        actor_contact=request.actor.contact,
        date=day,
        start_slot=request.start_slot,
        end_slot=end_slot,
        service_id=service.id,
        total_price=service.price,
        status=APPOINTMENT_STATUS_OCCUPIED,
    )
    logger.info(
        'Booking accepted: id=%s date=%s %s-%s service=%s',
        appointment.id,
        appointment.date,
        appointment.start_slot,
        appointment.end_slot,
        appointment.service_id,
    )
    return BookingResult(appointment=appointment)


def cancel(appointment_id: str, appointments: Iterable[Appointment]) -> list[Appointment]:
    """Return ``appointments`` without ``appointment_id``. Unknown ids are a no-op."""
    return [appointment for appointment in appointments if appointment.id != appointment_id]
