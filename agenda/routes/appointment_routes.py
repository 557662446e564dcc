import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core import config
from agenda.database import SessionLocal, ensure_appointment_schema
from agenda import store
from agenda.scheduling import availability, catalog
from agenda.scheduling.booking import BookingError, BookingRequest, BusinessHours
from agenda.scheduling.calendar import is_closed_day, shift_day, slot_hour
from agenda.scheduling.records import Actor, Appointment

router = APIRouter(tags=['agenda'])

logger = logging.getLogger(__name__)

MAX_ACTOR_NAME_LENGTH = 120
MAX_ACTOR_CONTACT_LENGTH = 40
CONFLICT_ERRORS = {BookingError.SLOT_TAKEN, BookingError.SUCCESSOR_UNAVAILABLE}


class ServiceResponse(BaseModel):
    id: str
    display_name: str
    duration_slots: int
    price: Decimal

    class Config:
        from_attributes = True


class SlotStatusResponse(BaseModel):
    slot: str
    state: str
    is_available: bool
    appointment_id: str | None = None


class AppointmentResponse(BaseModel):
    id: str
    actor_id: str
    actor_name: str
    actor_contact: str
    date: date
    start_slot: str
    end_slot: str
    service_id: str
    service_name: str
    total_price: Decimal
    status: str


class DailySummaryResponse(BaseModel):
    date: date
    count: int
    total_revenue: Decimal


class DayAgendaResponse(BaseModel):
    date: date
    previous_day: date
    next_day: date
    summary: DailySummaryResponse
    slots: list[SlotStatusResponse]
    appointments: list[AppointmentResponse]


class CreateAppointmentRequest(BaseModel):
    actor_id: str
    actor_name: str
    actor_contact: str
    date: date
    start_slot: str
    service_id: str

    @field_validator('actor_id')
    @classmethod
    def validate_actor_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Actor id is required.')
        return normalized

    @field_validator('actor_name')
    @classmethod
    def validate_actor_name(cls, value: str) -> str:
        normalized = ' '.join(value.split())
        if not normalized:
            raise ValueError('Name is required.')
        if len(normalized) > MAX_ACTOR_NAME_LENGTH:
            raise ValueError(f'Name must be {MAX_ACTOR_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('actor_contact')
    @classmethod
    def validate_actor_contact(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Contact phone is required.')
        if len(normalized) > MAX_ACTOR_CONTACT_LENGTH:
            raise ValueError(f'Contact must be {MAX_ACTOR_CONTACT_LENGTH} characters or fewer.')
        return normalized

    @field_validator('start_slot')
    @classmethod
    def validate_start_slot(cls, value: str) -> str:
        return value.strip()

    @field_validator('service_id')
    @classmethod
    def validate_service_id(cls, value: str) -> str:
        return value.strip().upper()


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL.',
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_business_hours() -> BusinessHours:
    return BusinessHours.from_config()


def get_booking_today() -> date | None:
    if not config.ENFORCE_FUTURE_DATES:
        return None
    return date.today()


def is_day_bookable(day: date, hours: BusinessHours) -> bool:
    if is_closed_day(day, hours.closed_weekday):
        return False

    today = get_booking_today()
    return today is None or day >= today


def validate_slot_param(slot: str) -> str:
    try:
        hour = slot_hour(slot)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Times must be whole hours formatted as HH:00.',
        ) from exc

    hours = get_business_hours()
    if not hours.contains(hour):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=BookingError.OUT_OF_HOURS.message,
        )

    return slot


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    # service_name is display only; total_price stays the booked snapshot.
    service = catalog.SERVICES.get(appointment.service_id)
    return AppointmentResponse(
        **appointment.model_dump(),
        service_name=service.display_name if service else appointment.service_id,
    )


def to_slot_response(slot_status: availability.SlotStatus) -> SlotStatusResponse:
    return SlotStatusResponse(
        slot=slot_status.slot,
        state=slot_status.state.value,
        is_available=slot_status.is_available,
        appointment_id=slot_status.appointment.id if slot_status.appointment else None,
    )


def to_summary_response(day: date, appointments: list[Appointment]) -> DailySummaryResponse:
    summary = availability.daily_summary(day, appointments)
    return DailySummaryResponse(date=day, count=summary.count, total_revenue=summary.total_revenue)


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    logger.error('Database error: %s', exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL.',
    )


@router.get('/services', response_model=list[ServiceResponse])
def list_services():
    return [ServiceResponse.model_validate(service) for service in catalog.list_services()]


@router.get('/days/{day}/slots', response_model=list[SlotStatusResponse])
def list_day_slots(day: date, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        hours = get_business_hours()
        appointments = store.load_appointments(db, day=day)
        schedule = availability.day_schedule(day, appointments, hours.open_hour, hours.close_hour)
        return [to_slot_response(slot_status) for slot_status in schedule]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/days/{day}/slots/{slot}/services', response_model=list[ServiceResponse])
def list_bookable_services(day: date, slot: str, db: Session = Depends(get_db)):
    slot = validate_slot_param(slot)
    ensure_database_ready()

    try:
        hours = get_business_hours()
        if not is_day_bookable(day, hours):
            return []

        appointments = store.load_appointments(db, day=day)
        services = availability.bookable_services(day, slot, appointments, hours.close_hour)
        return [ServiceResponse.model_validate(service) for service in services]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/days/{day}/summary', response_model=DailySummaryResponse)
def get_day_summary(day: date, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return to_summary_response(day, store.load_appointments(db, day=day))
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/days/{day}/agenda', response_model=DayAgendaResponse)
def get_day_agenda(day: date, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        hours = get_business_hours()
        appointments = store.load_appointments(db, day=day)
        schedule = availability.day_schedule(day, appointments, hours.open_hour, hours.close_hour)

        return DayAgendaResponse(
            date=day,
            previous_day=shift_day(day, -1),
            next_day=shift_day(day, 1),
            summary=to_summary_response(day, appointments),
            slots=[to_slot_response(slot_status) for slot_status in schedule],
            appointments=[to_appointment_response(appointment) for appointment in appointments],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_actor_appointments(
    actor_id: str = Query(...),
    db: Session = Depends(get_db),
):
    normalized_actor_id = actor_id.strip()
    if not normalized_actor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Actor id is required.',
        )

    ensure_database_ready()

    try:
        appointments = store.load_appointments(db, actor_id=normalized_actor_id)
        return [to_appointment_response(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/appointments', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    request = BookingRequest(
        actor=Actor(id=data.actor_id, name=data.actor_name, contact=data.actor_contact),
        date=data.date,
        start_slot=data.start_slot,
        service_id=data.service_id,
    )

    try:
        result = store.book(db, request, hours=get_business_hours(), today=get_booking_today())
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    if not result.ok:
        raise HTTPException(
            status_code=(
                status.HTTP_409_CONFLICT if result.error in CONFLICT_ERRORS else status.HTTP_400_BAD_REQUEST
            ),
            detail={'code': result.error.code, 'message': result.error.message},
        )

    return to_appointment_response(result.appointment)


@router.delete('/appointments/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def cancel_appointment(appointment_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        store.remove_appointment(db, appointment_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
