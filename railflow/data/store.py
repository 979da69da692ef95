"""In-memory flow store

Owns every station, train and flow record for its whole lifetime. The
aggregation and forecasting engines only ever read from it.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from railflow.data.records import FlowRecord, Station, Train
from railflow.utils.dates import DateLike, validate_range
from railflow.utils.logging_config import get_logger


logger = get_logger(__name__)


class FlowStore:
    """
    Immutable container for passenger-flow data

    Provides:
    - Identity lookups (station by id / name, train by code / train number)
    - Range queries (by date, station, train, date range)
    - Whole-store tallies (hourly, daily, per station, per train)
    """

    def __init__(
        self,
        records: Iterable[FlowRecord] = (),
        stations: Iterable[Station] = (),
        trains: Iterable[Train] = ()
    ):
        """
        Initialize store

        Args:
            records: Flow records
            stations: Station master data
            trains: Train master data
        """
        self._records: Tuple[FlowRecord, ...] = tuple(records)
        self._stations: Tuple[Station, ...] = tuple(stations)
        self._trains: Tuple[Train, ...] = tuple(trains)

        self._station_map: Dict[int, Station] = {s.station_id: s for s in self._stations}
        self._train_map: Dict[str, Train] = {t.code: t for t in self._trains}

        self._by_station: Dict[int, List[FlowRecord]] = defaultdict(list)
        self._by_train: Dict[str, List[FlowRecord]] = defaultdict(list)
        self._by_date: Dict[date, List[FlowRecord]] = defaultdict(list)

        for record in self._records:
            self._by_station[record.station_id].append(record)
            self._by_train[record.train_code].append(record)
            self._by_date[record.date].append(record)

        logger.debug(
            f"Flow store built: {len(self._stations)} stations, "
            f"{len(self._trains)} trains, {len(self._records):,} records"
        )

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    @property
    def records(self) -> Tuple[FlowRecord, ...]:
        return self._records

    @property
    def stations(self) -> Tuple[Station, ...]:
        return self._stations

    @property
    def trains(self) -> Tuple[Train, ...]:
        return self._trains

    def is_empty(self) -> bool:
        return not self._records

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Identity lookups
    # ------------------------------------------------------------------

    def station_by_id(self, station_id: int) -> Optional[Station]:
        return self._station_map.get(station_id)

    def station_by_name(self, name: str) -> Optional[Station]:
        for station in self._stations:
            if station.name == name:
                return station
        return None

    def train_by_code(self, code: str) -> Optional[Train]:
        return self._train_map.get(code)

    def train_by_train_code(self, train_code: str) -> Optional[Train]:
        for train in self._trains:
            if train.train_code == train_code:
                return train
        return None

    def station_names(self) -> List[str]:
        return [s.name for s in self._stations]

    def train_codes(self) -> List[str]:
        return [t.train_code for t in self._trains]

    # ------------------------------------------------------------------
    # Range queries
    # ------------------------------------------------------------------

    def records_for_date(self, day: date) -> List[FlowRecord]:
        return list(self._by_date.get(day, ()))

    def records_for_station(self, station_id: int) -> List[FlowRecord]:
        return list(self._by_station.get(station_id, ()))

    def records_for_train(self, train_code: str) -> List[FlowRecord]:
        return list(self._by_train.get(train_code, ()))

    def records_in_date_range(self, start: DateLike, end: DateLike) -> List[FlowRecord]:
        """
        Records whose date falls within [start, end] inclusive

        Raises:
            InvalidRangeError: If end is before start or a bound is unparsable
        """
        start_date, end_date = validate_range(start, end)
        return [r for r in self._records if start_date <= r.date <= end_date]

    # ------------------------------------------------------------------
    # Tallies
    # ------------------------------------------------------------------

    def total_passengers(self) -> int:
        return sum(r.total_passengers for r in self._records)

    def total_revenue(self) -> float:
        return float(sum(r.revenue for r in self._records))

    def station_passenger_stats(self) -> Dict[str, int]:
        """Passengers per station name; records with unknown stations are left out"""
        stats: Dict[str, int] = defaultdict(int)
        for record in self._records:
            station = self.station_by_id(record.station_id)
            if station is not None:
                stats[station.name] += record.total_passengers
        return dict(sorted(stats.items()))

    def train_passenger_stats(self) -> Dict[str, int]:
        stats: Dict[str, int] = defaultdict(int)
        for record in self._records:
            stats[record.train_code] += record.total_passengers
        return dict(sorted(stats.items()))

    def hourly_passenger_stats(self) -> Dict[int, int]:
        stats: Dict[int, int] = defaultdict(int)
        for record in self._records:
            if record.hour is not None:
                stats[record.hour] += record.total_passengers
        return dict(sorted(stats.items()))

    def daily_passenger_stats(self) -> Dict[int, int]:
        stats: Dict[int, int] = defaultdict(int)
        for record in self._records:
            stats[record.day_of_week] += record.total_passengers
        return dict(sorted(stats.items()))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> bool:
        """True when the store holds data and every record's station resolves"""
        if not self._stations or not self._trains or not self._records:
            return False

        return all(self.station_by_id(r.station_id) is not None for r in self._records)

    def summary(self) -> Dict[str, float]:
        return {
            'stations': len(self._stations),
            'trains': len(self._trains),
            'records': len(self._records),
            'total_passengers': self.total_passengers(),
            'total_revenue': self.total_revenue(),
        }

    def __repr__(self) -> str:
        return (
            f"FlowStore(stations={len(self._stations)}, "
            f"trains={len(self._trains)}, records={len(self._records)})"
        )
