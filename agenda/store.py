"""SQLAlchemy-backed appointment store.

The store owns the appointment collection. The scheduling engine only sees
plain ``Appointment`` snapshots loaded from here.
"""

import logging
from datetime import date
from threading import Lock

from sqlalchemy.orm import Session

from agenda.models.appointment import AppointmentRow
from agenda.scheduling.booking import BookingRequest, BookingResult, BusinessHours, validate_booking
from agenda.scheduling.calendar import parse_date
from agenda.scheduling.records import Appointment

logger = logging.getLogger(__name__)

# Serializes snapshot -> validate -> commit within this process. Separate
# processes sharing one database are not covered.
_booking_lock = Lock()


def to_appointment(row: AppointmentRow) -> Appointment:
    return Appointment(
        id=row.id,
        actor_id=row.actor_id,
        actor_name=row.actor_name,
        actor_contact=row.actor_contact or '',
        date=row.date,
        start_slot=row.start_slot,
        end_slot=row.end_slot,
        service_id=row.service_id,
        total_price=row.total_price,
        status=row.status,
    )


def to_row(appointment: Appointment) -> AppointmentRow:
    return AppointmentRow(**appointment.model_dump())


def load_appointments(db: Session, day: date | None = None, actor_id: str | None = None) -> list[Appointment]:
    query = db.query(AppointmentRow)
    if day is not None:
        query = query.filter(AppointmentRow.date == day)
    if actor_id is not None:
        query = query.filter(AppointmentRow.actor_id == actor_id)

    rows = query.order_by(AppointmentRow.date.asc(), AppointmentRow.start_slot.asc()).all()
    return [to_appointment(row) for row in rows]


def add_appointment(db: Session, appointment: Appointment) -> Appointment:
    db.add(to_row(appointment))
    db.commit()
    return appointment


def remove_appointment(db: Session, appointment_id: str) -> bool:
    row = db.query(AppointmentRow).filter(AppointmentRow.id == appointment_id).first()
    if row is None:
        return False

    db.delete(row)
    db.commit()
    logger.info('Appointment cancelled: id=%s date=%s slot=%s', row.id, row.date, row.start_slot)
    return True


def book(
    db: Session,
    request: BookingRequest,
    hours: BusinessHours | None = None,
    today: date | None = None,
) -> BookingResult:
    with _booking_lock:
        try:
            snapshot = load_appointments(db, day=parse_date(request.date))
        except ValueError:
            # The validator rejects the malformed date; nothing to load.
            snapshot = []

        result = validate_booking(request, snapshot, hours=hours, today=today)
        if result.ok:
            add_appointment(db, result.appointment)

        return result
