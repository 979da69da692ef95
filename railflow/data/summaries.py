"""
Result types produced by the aggregation engine.

All of these are computed on demand from a scan of flow records and are never
written back to the store.
"""
from collections import Counter
from dataclasses import dataclass, asdict
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class StationSummary:
    station_id: int
    station_name: str
    total_passengers: int
    boarding_passengers: int
    alighting_passengers: int
    average_ticket_price: float
    total_revenue: float
    peak_hour: Optional[int]
    peak_day: Optional[int]
    record_count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TrainSummary:
    train_code: str
    total_passengers: int
    utilization_rate: float
    average_ticket_price: float
    total_revenue: float
    total_trips: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TimeSeriesPoint:
    date: date
    passengers: int
    revenue: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TicketTypeSummary:
    ticket_type: str
    record_count: int
    total_passengers: int
    total_revenue: float
    average_price: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CorrelationPair:
    """Two entities whose daily passenger totals move together (or opposite)."""
    first: str
    second: str
    coefficient: float
    common_dates: int

    def to_dict(self) -> dict:
        return asdict(self)


class Diagnostics(Counter):
    """
    Per-call tally of records skipped during aggregation, keyed by reason.

    Callers create one, pass it into an aggregation call and inspect it
    afterwards. The aggregator itself keeps no counters between calls.
    """

    UNKNOWN_STATION = 'unknown_station'
    MISSING_DEPARTURE_TIME = 'missing_departure_time'

    @property
    def skipped(self) -> int:
        return sum(self.values())
