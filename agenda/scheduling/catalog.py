"""Service catalog definitions."""

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping


class UnknownService(LookupError):
    """Raised when a service id is not part of the catalog."""

    def __init__(self, service_id: str) -> None:
        super().__init__(f'Unknown service: {service_id!r}')
        self.service_id = service_id


@dataclass(frozen=True)
class Service:
    """A bookable service and how many consecutive hourly slots it takes."""
    id: str
    display_name: str
    duration_slots: int
    price: Decimal


SERVICES: Mapping[str, Service] = MappingProxyType({
    service.id: service
    for service in (
        Service(id='MAOS', display_name='Mãos', duration_slots=1, price=Decimal('35.00')),
        Service(id='PES', display_name='Pés', duration_slots=1, price=Decimal('35.00')),
        Service(id='MAOS_E_PES', display_name='Mãos + Pés', duration_slots=2, price=Decimal('60.00')),
    )
})


def lookup(service_id: str) -> Service:
    try:
        return SERVICES[service_id]
    except (KeyError, TypeError) as exc:
        raise UnknownService(service_id) from exc


def list_services() -> list[Service]:
    return list(SERVICES.values())
