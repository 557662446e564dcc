"""Slot occupancy derived from the current appointment set.

Nothing in this module mutates its inputs. Every answer is recomputed from the
appointment snapshot passed in, so callers can query as often as they like.
Appointments on the same date are assumed not to overlap; the booking
validator is what guarantees it.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable

from agenda.scheduling import catalog
from agenda.scheduling.calendar import enumerate_slots, parse_date, slot_hour, successor_slot
from agenda.scheduling.catalog import Service
from agenda.scheduling.records import Appointment


class SlotState(str, Enum):
    AVAILABLE = 'available'
    OCCUPIED_START = 'occupied_start'
    OCCUPIED_CONTINUATION = 'occupied_continuation'


@dataclass(frozen=True)
class SlotStatus:
    slot: str
    state: SlotState
    appointment: Appointment | None = None

    @property
    def is_available(self) -> bool:
        return self.state is SlotState.AVAILABLE


@dataclass(frozen=True)
class DailySummary:
    count: int
    total_revenue: Decimal


def appointments_on(day: date | str, appointments: Iterable[Appointment]) -> list[Appointment]:
    target = parse_date(day)
    return sorted(
        (appointment for appointment in appointments if appointment.date == target),
        key=lambda appointment: appointment.start_hour,
    )


def slot_status(day: date | str, slot: str, appointments: Iterable[Appointment]) -> SlotStatus:
    hour = slot_hour(slot)

    for appointment in appointments_on(day, appointments):
        if appointment.start_hour == hour:
            return SlotStatus(slot=slot, state=SlotState.OCCUPIED_START, appointment=appointment)
        if appointment.start_hour < hour < appointment.end_hour:
            return SlotStatus(slot=slot, state=SlotState.OCCUPIED_CONTINUATION, appointment=appointment)

    return SlotStatus(slot=slot, state=SlotState.AVAILABLE)


def is_slot_free(day: date | str, slot: str, appointments: Iterable[Appointment]) -> bool:
    return slot_status(day, slot, appointments).is_available


def is_successor_free(
    day: date | str,
    slot: str,
    appointments: Iterable[Appointment],
    close_hour: int,
) -> bool:
    next_slot = successor_slot(slot)
    if slot_hour(next_slot) >= close_hour:
        return False
    return is_slot_free(day, next_slot, appointments)


def fits_service(
    day: date | str,
    slot: str,
    service: Service,
    appointments: Iterable[Appointment],
    close_hour: int,
) -> bool:
    """Whether every slot the service needs from ``slot`` onwards is free and inside hours."""
    appointments = list(appointments)

    if slot_hour(slot) >= close_hour or not is_slot_free(day, slot, appointments):
        return False

    current = slot
    for _ in range(service.duration_slots - 1):
        if not is_successor_free(day, current, appointments, close_hour):
            return False
        current = successor_slot(current)

    return True


def bookable_services(
    day: date | str,
    slot: str,
    appointments: Iterable[Appointment],
    close_hour: int,
) -> list[Service]:
    appointments = list(appointments)
    return [
        service
        for service in catalog.list_services()
        if fits_service(day, slot, service, appointments, close_hour)
    ]


def day_schedule(
    day: date | str,
    appointments: Iterable[Appointment],
    open_hour: int,
    close_hour: int,
) -> list[SlotStatus]:
    daily_appointments = appointments_on(day, appointments)
    return [slot_status(day, slot, daily_appointments) for slot in enumerate_slots(open_hour, close_hour)]


def daily_summary(day: date | str, appointments: Iterable[Appointment]) -> DailySummary:
    # Counts appointments, not slots, so two-slot bookings are counted once.
    daily_appointments = appointments_on(day, appointments)
    return DailySummary(
        count=len(daily_appointments),
        total_revenue=sum((appointment.total_price for appointment in daily_appointments), Decimal('0.00')),
    )
