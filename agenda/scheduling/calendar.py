"""Calendar helpers: slot labels, weekday classification and date parsing."""

from datetime import date, datetime, timedelta

SUNDAY = 0


def slot_label(hour: int) -> str:
    return f'{hour:02d}:00'


def slot_hour(label: str) -> int:
    """Parse a zero-padded ``HH:00`` label into its hour."""
    if not isinstance(label, str) or len(label) != 5 or label[2:] != ':00' or not label[:2].isdigit():
        raise ValueError(f'Invalid slot label: {label!r}. Expected HH:00.')

    hour = int(label[:2])
    if hour > 24:
        raise ValueError(f'Invalid slot label: {label!r}. Hour must be between 00 and 24.')

    return hour


def enumerate_slots(open_hour: int, close_hour: int) -> list[str]:
    return [slot_label(hour) for hour in range(open_hour, close_hour)]


def successor_slot(slot: str) -> str:
    # Midnight is not wrapped: "23:00" -> "24:00".
    return slot_label(slot_hour(slot) + 1)


def parse_date(value: date | str) -> date:
    # datetime is a date subclass; keep only the calendar day.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if not isinstance(value, str) or len(value) != 10 or value[4] != '-' or value[7] != '-':
        raise ValueError(f'Invalid date: {value!r}. Expected YYYY-MM-DD.')

    return date.fromisoformat(value)


def format_date(day: date) -> str:
    return day.isoformat()


def day_of_week(day: date | str) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return (parse_date(day).weekday() + 1) % 7


def is_closed_day(day: date | str, closed_weekday: int = SUNDAY) -> bool:
    return day_of_week(day) == closed_weekday


def shift_day(day: date | str, days: int) -> date:
    return parse_date(day) + timedelta(days=days)
