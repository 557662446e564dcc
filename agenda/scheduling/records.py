"""Appointment and actor records shared by the scheduling engine and the store."""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from agenda.scheduling.calendar import parse_date, slot_hour

APPOINTMENT_STATUS_OCCUPIED = 'occupied'


class Actor(BaseModel):
    """The person a booking is made for. Identity is supplied by the host."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    contact: str


class Appointment(BaseModel):
    """A committed booking. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    actor_id: str
    actor_name: str
    actor_contact: str
    date: date
    start_slot: str
    end_slot: str
    service_id: str
    total_price: Decimal
    status: str = APPOINTMENT_STATUS_OCCUPIED

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, value: Any) -> date:
        return parse_date(value)

    @field_validator('start_slot', 'end_slot')
    @classmethod
    def validate_slot(cls, value: str) -> str:
        slot_hour(value)
        return value

    @field_validator('total_price')
    @classmethod
    def validate_total_price(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError('Total price cannot be negative.')
        return value

    @property
    def start_hour(self) -> int:
        return slot_hour(self.start_slot)

    @property
    def end_hour(self) -> int:
        return slot_hour(self.end_slot)

    def to_record(self) -> dict[str, Any]:
        # date -> YYYY-MM-DD, total_price -> decimal string
        return self.model_dump(mode='json')

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> 'Appointment':
        return cls.model_validate(record)
