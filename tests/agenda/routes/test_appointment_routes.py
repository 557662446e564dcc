import os
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from agenda.core import config  # noqa: E402
from agenda.database import Base  # noqa: E402
from agenda.models.appointment import AppointmentRow  # noqa: E402
from agenda.routes.appointment_routes import (  # noqa: E402
    CreateAppointmentRequest,
    cancel_appointment,
    create_appointment,
    get_booking_today,
    get_day_agenda,
    get_day_summary,
    list_actor_appointments,
    list_bookable_services,
    list_day_slots,
    list_services,
)

MONDAY = date(2024, 6, 10)


@pytest.fixture
def appointment_db(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('agenda.routes.appointment_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr(config, 'BUSINESS_OPEN_HOUR', 7)
    monkeypatch.setattr(config, 'BUSINESS_CLOSE_HOUR', 19)
    monkeypatch.setattr(config, 'CLOSED_WEEKDAY', 0)
    monkeypatch.setattr(config, 'ENFORCE_FUTURE_DATES', False)

    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[AppointmentRow.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[AppointmentRow.__table__])


def _booking(start_slot: str, service_id: str, day: date = MONDAY, actor_id: str = 'actor-ana') -> CreateAppointmentRequest:
    return CreateAppointmentRequest(
        actor_id=actor_id,
        actor_name='Ana Souza',
        actor_contact='(11) 98888-7777',
        date=day,
        start_slot=start_slot,
        service_id=service_id,
    )


def test_create_appointment_request_normalizes_fields() -> None:
    request = CreateAppointmentRequest(
        actor_id=' actor-ana ',
        actor_name='  Ana   Souza ',
        actor_contact=' (11) 98888-7777 ',
        date=MONDAY,
        start_slot=' 10:00 ',
        service_id=' maos_e_pes ',
    )

    assert request.actor_id == 'actor-ana'
    assert request.actor_name == 'Ana Souza'
    assert request.actor_contact == '(11) 98888-7777'
    assert request.start_slot == '10:00'
    assert request.service_id == 'MAOS_E_PES'


@pytest.mark.parametrize('field', ['actor_id', 'actor_name', 'actor_contact'])
def test_create_appointment_request_requires_actor_fields(field: str) -> None:
    fields = {
        'actor_id': 'actor-ana',
        'actor_name': 'Ana Souza',
        'actor_contact': '(11) 98888-7777',
        'date': MONDAY,
        'start_slot': '10:00',
        'service_id': 'MAOS',
    }
    fields[field] = '   '

    with pytest.raises(ValidationError):
        CreateAppointmentRequest(**fields)


def test_list_services_returns_catalog() -> None:
    services = list_services()

    assert [(service.id, service.duration_slots, service.price) for service in services] == [
        ('MAOS', 1, Decimal('35.00')),
        ('PES', 1, Decimal('35.00')),
        ('MAOS_E_PES', 2, Decimal('60.00')),
    ]


def test_create_appointment_returns_booked_appointment(appointment_db) -> None:
    response = create_appointment(_booking('10:00', 'MAOS'), db=appointment_db)

    assert response.start_slot == '10:00'
    assert response.end_slot == '11:00'
    assert response.service_name == 'Mãos'
    assert response.total_price == Decimal('35.00')
    assert response.status == 'occupied'


@pytest.mark.parametrize(
    ('existing', 'start_slot', 'service_id', 'day', 'status_code', 'code'),
    [
        (None, '10:00', 'UNHA_GEL', MONDAY, 400, 'unknown_service'),
        (None, '10:00', 'MAOS', date(2024, 6, 9), 400, 'closed_day'),
        (None, '19:00', 'MAOS', MONDAY, 400, 'out_of_hours'),
        (None, '10h', 'MAOS', MONDAY, 400, 'invalid_input'),
        ('10:00', '10:00', 'PES', MONDAY, 409, 'slot_taken'),
        (None, '18:00', 'MAOS_E_PES', MONDAY, 409, 'successor_unavailable'),
        ('11:00', '10:00', 'MAOS_E_PES', MONDAY, 409, 'successor_unavailable'),
    ],
)
def test_create_appointment_maps_rejections(
    appointment_db,
    existing: str | None,
    start_slot: str,
    service_id: str,
    day: date,
    status_code: int,
    code: str,
) -> None:
    if existing:
        create_appointment(_booking(existing, 'MAOS', actor_id='actor-bia'), db=appointment_db)

    with pytest.raises(HTTPException) as exception_info:
        create_appointment(_booking(start_slot, service_id, day=day), db=appointment_db)

    assert exception_info.value.status_code == status_code
    assert exception_info.value.detail['code'] == code


def test_create_appointment_rejects_past_dates_when_enforced(appointment_db, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'ENFORCE_FUTURE_DATES', True)

    with pytest.raises(HTTPException) as exception_info:
        create_appointment(_booking('10:00', 'MAOS'), db=appointment_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail['code'] == 'past_date'


def test_get_booking_today_respects_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'ENFORCE_FUTURE_DATES', False)
    assert get_booking_today() is None

    monkeypatch.setattr(config, 'ENFORCE_FUTURE_DATES', True)
    assert get_booking_today() == date.today()


def test_list_day_slots_reports_start_and_continuation(appointment_db) -> None:
    booked = create_appointment(_booking('09:00', 'MAOS_E_PES'), db=appointment_db)

    slots = {slot.slot: slot for slot in list_day_slots(MONDAY, db=appointment_db)}

    assert len(slots) == 12
    assert slots['09:00'].state == 'occupied_start'
    assert slots['10:00'].state == 'occupied_continuation'
    assert slots['10:00'].appointment_id == booked.id
    assert slots['11:00'].is_available


def test_list_bookable_services_hides_two_slot_service_before_booked_hour(appointment_db) -> None:
    create_appointment(_booking('11:00', 'PES'), db=appointment_db)

    services = list_bookable_services(MONDAY, '10:00', db=appointment_db)

    assert [service.id for service in services] == ['MAOS', 'PES']


def test_list_bookable_services_is_empty_on_closed_day(appointment_db) -> None:
    assert list_bookable_services(date(2024, 6, 9), '10:00', db=appointment_db) == []


def test_list_bookable_services_is_empty_on_past_day_when_enforced(
    appointment_db,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(config, 'ENFORCE_FUTURE_DATES', True)

    assert list_bookable_services(MONDAY, '10:00', db=appointment_db) == []


@pytest.mark.parametrize(('slot', 'detail'), [
    ('10:30', 'Times must be whole hours formatted as HH:00.'),
    ('20:00', 'This time is outside business hours.'),
])
def test_list_bookable_services_rejects_invalid_slot(appointment_db, slot: str, detail: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_bookable_services(MONDAY, slot, db=appointment_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == detail


def test_day_agenda_and_summary_count_appointments(appointment_db) -> None:
    create_appointment(_booking('09:00', 'MAOS_E_PES'), db=appointment_db)
    create_appointment(_booking('14:00', 'PES', actor_id='actor-bia'), db=appointment_db)
    create_appointment(_booking('14:00', 'PES', day=MONDAY + timedelta(days=1)), db=appointment_db)

    agenda = get_day_agenda(MONDAY, db=appointment_db)
    summary = get_day_summary(MONDAY, db=appointment_db)

    assert agenda.previous_day == date(2024, 6, 9)
    assert agenda.next_day == date(2024, 6, 11)
    assert agenda.summary == summary
    assert summary.count == 2
    assert summary.total_revenue == Decimal('95.00')
    assert [appointment.start_slot for appointment in agenda.appointments] == ['09:00', '14:00']


def test_list_actor_appointments_returns_history(appointment_db) -> None:
    create_appointment(_booking('09:00', 'MAOS'), db=appointment_db)
    create_appointment(_booking('10:00', 'PES', actor_id='actor-bia'), db=appointment_db)

    history = list_actor_appointments(actor_id=' actor-ana ', db=appointment_db)

    assert [(appointment.actor_id, appointment.start_slot) for appointment in history] == [('actor-ana', '09:00')]


def test_list_actor_appointments_requires_actor_id() -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_actor_appointments(actor_id='   ', db=None)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Actor id is required.'


def test_cancel_appointment_reopens_slot_and_is_idempotent(appointment_db) -> None:
    booked = create_appointment(_booking('09:00', 'MAOS_E_PES'), db=appointment_db)

    first = cancel_appointment(booked.id, db=appointment_db)
    second = cancel_appointment(booked.id, db=appointment_db)

    assert first.status_code == second.status_code == 204
    slots = {slot.slot: slot for slot in list_day_slots(MONDAY, db=appointment_db)}
    assert slots['09:00'].is_available
    assert slots['10:00'].is_available
