"""
Domain records held by the flow store.
"""
from dataclasses import dataclass
from datetime import date, time
from typing import Optional


PEAK_HOURS = frozenset({7, 8, 9, 17, 18, 19})
UNKNOWN_TICKET_TYPE = 'unknown'


def normalize_ticket_type(ticket_type: Optional[str]) -> str:
    """Trim a ticket type label; empty labels become 'unknown'"""
    label = (ticket_type or '').strip()
    return label if label else UNKNOWN_TICKET_TYPE


@dataclass(frozen=True)
class Station:
    """
    A passenger station.
    """
    station_id: int
    name: str
    code: str = ''
    short_name: str = ''
    telecode: str = ''


@dataclass(frozen=True)
class Train:
    """
    A scheduled train. `code` is the store key, `train_code` the public number.
    """
    code: str
    train_code: str
    capacity: int = 0
    yearly_capacity: int = 0


@dataclass(frozen=True)
class FlowRecord:
    """
    One observed boarding/alighting event at a station, for a train, on a date.
    """
    line_code: str
    train_code: str
    station_id: int
    date: date
    arrival_time: Optional[time]
    departure_time: Optional[time]
    boarding: int
    alighting: int
    ticket_type: str = ''
    ticket_price: float = 0.0
    revenue: float = 0.0
    origin_station: str = ''
    destination_station: str = ''

    def __post_init__(self):
        if self.boarding < 0 or self.alighting < 0:
            raise ValueError(
                f"Passenger counts must be non-negative "
                f"(boarding={self.boarding}, alighting={self.alighting})"
            )
        if self.revenue < 0:
            raise ValueError(f"Revenue must be non-negative, got {self.revenue}")

    @property
    def total_passengers(self) -> int:
        return self.boarding + self.alighting

    @property
    def hour(self) -> Optional[int]:
        """Departure hour, or None when the departure time is unknown"""
        return self.departure_time.hour if self.departure_time is not None else None

    @property
    def day_of_week(self) -> int:
        """ISO day of week (Monday=1 ... Sunday=7)"""
        return self.date.isoweekday()

    @property
    def is_weekend(self) -> bool:
        return self.day_of_week > 5

    @property
    def is_peak_hour(self) -> bool:
        return self.hour in PEAK_HOURS

    @property
    def normalized_ticket_type(self) -> str:
        return normalize_ticket_type(self.ticket_type)
