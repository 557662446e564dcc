"""Appointment model definitions."""

from sqlalchemy import Column, Date, Numeric, String
from agenda.database import Base


class AppointmentRow(Base):
    """Persisted form of a committed appointment."""
    __tablename__ = "appointments"

    id = Column(String, primary_key=True)
    actor_id = Column(String, nullable=False)
    actor_name = Column(String, nullable=False)
    actor_contact = Column(String, nullable=False, default='')
    date = Column(Date, nullable=False)
    start_slot = Column(String(5), nullable=False)  # HH:00
    end_slot = Column(String(5), nullable=False)  # HH:00
    service_id = Column(String, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default='occupied')
