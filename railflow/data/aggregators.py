"""Passenger-flow aggregation for Railflow"""

import logging
from collections import Counter, defaultdict
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from railflow.data.records import FlowRecord, Train
from railflow.data.store import FlowStore
from railflow.data.summaries import (
    CorrelationPair,
    Diagnostics,
    StationSummary,
    TicketTypeSummary,
    TimeSeriesPoint,
    TrainSummary,
)
from railflow.errors import InsufficientDataError, UnknownEntityError
from railflow.utils.config import ConfigLoader
from railflow.utils.dates import DateLike, validate_range
from railflow.utils.logging_config import get_logger
from railflow.utils.stats import pearson_correlation, price_bucket


FRAME_COLUMNS = [
    'train_code', 'station_id', 'date', 'hour', 'day_of_week', 'boarding',
    'alighting', 'total_passengers', 'ticket_type', 'ticket_price', 'revenue'
]


def records_to_frame(records: Iterable[FlowRecord]) -> pd.DataFrame:
    """
    Flatten flow records into a DataFrame

    Ticket types are normalized; a missing departure hour is NaN.
    """
    data: Dict[str, list] = {col: [] for col in FRAME_COLUMNS}

    for r in records:
        data['train_code'].append(r.train_code)
        data['station_id'].append(r.station_id)
        data['date'].append(r.date)
        data['hour'].append(r.hour if r.hour is not None else np.nan)
        data['day_of_week'].append(r.day_of_week)
        data['boarding'].append(r.boarding)
        data['alighting'].append(r.alighting)
        data['total_passengers'].append(r.total_passengers)
        data['ticket_type'].append(r.normalized_ticket_type)
        data['ticket_price'].append(r.ticket_price)
        data['revenue'].append(r.revenue)

    df = pd.DataFrame(data, columns=FRAME_COLUMNS)
    df['hour'] = df['hour'].astype(float)
    for col in ['boarding', 'alighting', 'total_passengers', 'day_of_week']:
        df[col] = df[col].astype('int64')
    for col in ['ticket_price', 'revenue']:
        df[col] = df[col].astype(float)

    return df


def summaries_to_frame(items: Sequence) -> pd.DataFrame:
    """Convert a list of summary dataclasses into a DataFrame for export"""
    return pd.DataFrame([item.to_dict() for item in items])


def _peak_slots(df: pd.DataFrame, key_col: str, slot_col: str) -> Dict:
    """
    Busiest slot (hour or weekday) per key

    Ties go to the smallest slot index.
    """
    valid = df.dropna(subset=[slot_col])
    if valid.empty:
        return {}

    tally = (
        valid.groupby([key_col, slot_col])['total_passengers']
        .sum()
        .reset_index()
        .sort_values([key_col, 'total_passengers', slot_col], ascending=[True, False, True])
        .drop_duplicates(subset=[key_col], keep='first')
    )

    return {key: int(slot) for key, slot in zip(tally[key_col], tally[slot_col])}


def _daily_points(df: pd.DataFrame) -> List[TimeSeriesPoint]:
    """Sum passengers and revenue per date, ascending"""
    if df.empty:
        return []

    daily = (
        df.groupby('date')
        .agg(passengers=('total_passengers', 'sum'), revenue=('revenue', 'sum'))
        .sort_index()
    )

    return [
        TimeSeriesPoint(date=day, passengers=int(row.passengers), revenue=float(row.revenue))
        for day, row in daily.iterrows()
    ]


class FlowAggregator:
    """
    Read-only analytics over a FlowStore

    Handles:
    - Station and train statistics (totals, peaks, utilization)
    - Daily time series (all traffic, per station, per train)
    - Correlation between entities' daily totals
    - Revenue and efficiency rankings
    - Ticket type and price distribution analysis

    Empty input produces empty output. Records whose station cannot be
    resolved are skipped and counted in the caller's Diagnostics.
    """

    def __init__(
        self,
        store: FlowStore,
        config: Optional[ConfigLoader] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize aggregator

        Args:
            store: Flow store to read from
            config: Configuration loader instance
            logger: Logger to report skipped records to
        """
        self.store = store
        self.config = config if config else ConfigLoader.from_dict({})
        self.logger = logger if logger else get_logger(__name__)

        self.min_common_dates = int(self.config.get('analysis.min_common_dates', 10))
        self.correlation_threshold = float(self.config.get('analysis.correlation_threshold', 0.5))
        self.price_bucket_size = float(self.config.get('analysis.price_bucket', 5.0))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _station_names(self) -> Dict[int, str]:
        return {s.station_id: s.name for s in self.store.stations}

    def _resolve_train(self, train_code: str) -> Optional[Train]:
        train = self.store.train_by_code(train_code)
        if train is None:
            train = self.store.train_by_train_code(train_code)
        return train

    def _report_unknown_stations(
        self,
        unknown_count: int,
        missing_ids: List[int],
        diagnostics: Optional[Diagnostics],
        context: str
    ):
        if diagnostics is not None:
            diagnostics[Diagnostics.UNKNOWN_STATION] += unknown_count
        self.logger.warning(
            f"{context}: skipped {unknown_count:,} records with unknown station ids "
            f"{missing_ids[:5]}{'...' if len(missing_ids) > 5 else ''}"
        )

    def _with_known_stations(
        self,
        df: pd.DataFrame,
        diagnostics: Optional[Diagnostics],
        context: str
    ) -> pd.DataFrame:
        """Attach station names and drop rows whose station id is unknown"""
        df = df.assign(station_name=df['station_id'].map(self._station_names()))
        unknown = df['station_name'].isna()
        unknown_count = int(unknown.sum())

        if unknown_count:
            missing_ids = sorted(int(i) for i in df.loc[unknown, 'station_id'].unique())
            self._report_unknown_stations(unknown_count, missing_ids, diagnostics, context)

        return df[~unknown]

    def _known_station_records(
        self,
        records: Iterable[FlowRecord],
        diagnostics: Optional[Diagnostics],
        context: str
    ) -> List[FlowRecord]:
        """Record-level counterpart of _with_known_stations"""
        known_ids = set(self._station_names())
        kept, unknown_ids = [], Counter()
        for record in records:
            if record.station_id in known_ids:
                kept.append(record)
            else:
                unknown_ids[record.station_id] += 1

        if unknown_ids:
            self._report_unknown_stations(
                sum(unknown_ids.values()), sorted(unknown_ids), diagnostics, context
            )

        return kept

    def _require_station(self, station_id: int):
        station = self.store.station_by_id(station_id)
        if station is None:
            raise UnknownEntityError('station', station_id)
        return station

    def _require_train(self, train_code: str):
        if self._resolve_train(train_code) is None and not self.store.records_for_train(train_code):
            raise UnknownEntityError('train', train_code)

    # ------------------------------------------------------------------
    # Entity statistics
    # ------------------------------------------------------------------

    def station_statistics(self, diagnostics: Optional[Diagnostics] = None) -> List[StationSummary]:
        """
        Per-station totals, peak hour and peak weekday

        Args:
            diagnostics: Optional tally that receives skipped-record counts

        Returns:
            Summaries sorted by total passengers (descending), then station id
        """
        df = records_to_frame(self.store.records)
        if df.empty:
            return []

        df = self._with_known_stations(df, diagnostics, 'Station statistics')
        if df.empty:
            return []

        missing_hours = int(df['hour'].isna().sum())
        if missing_hours and diagnostics is not None:
            diagnostics[Diagnostics.MISSING_DEPARTURE_TIME] += missing_hours

        grouped = df.groupby('station_id').agg(
            station_name=('station_name', 'first'),
            boarding=('boarding', 'sum'),
            alighting=('alighting', 'sum'),
            total_passengers=('total_passengers', 'sum'),
            total_revenue=('revenue', 'sum'),
            record_count=('total_passengers', 'size')
        )

        peak_hours = _peak_slots(df, 'station_id', 'hour')
        peak_days = _peak_slots(df, 'station_id', 'day_of_week')

        stats = []
        for station_id, row in grouped.iterrows():
            record_count = int(row.record_count)
            total_revenue = float(row.total_revenue)
            stats.append(StationSummary(
                station_id=int(station_id),
                station_name=row.station_name,
                total_passengers=int(row.total_passengers),
                boarding_passengers=int(row.boarding),
                alighting_passengers=int(row.alighting),
                average_ticket_price=total_revenue / record_count if record_count > 0 else 0.0,
                total_revenue=total_revenue,
                peak_hour=peak_hours.get(station_id),
                peak_day=peak_days.get(station_id),
                record_count=record_count
            ))

        stats.sort(key=lambda s: (-s.total_passengers, s.station_id))

        self.logger.debug(f"Computed statistics for {len(stats)} stations")

        return stats

    def train_statistics(self) -> List[TrainSummary]:
        """
        Per-train totals and utilization

        Utilization is total passengers divided by the train's capacity,
        0.0 when the train is unknown or its capacity is 0.

        Returns:
            Summaries sorted by total passengers (descending), then train code
        """
        df = records_to_frame(self.store.records)
        if df.empty:
            return []

        grouped = df.groupby('train_code').agg(
            total_passengers=('total_passengers', 'sum'),
            total_revenue=('revenue', 'sum'),
            total_trips=('total_passengers', 'size')
        )

        stats = []
        for train_code, row in grouped.iterrows():
            train = self._resolve_train(train_code)
            total_passengers = int(row.total_passengers)
            total_trips = int(row.total_trips)
            total_revenue = float(row.total_revenue)

            if train is not None and train.capacity > 0:
                utilization = total_passengers / train.capacity
            else:
                utilization = 0.0

            stats.append(TrainSummary(
                train_code=train_code,
                total_passengers=total_passengers,
                utilization_rate=utilization,
                average_ticket_price=total_revenue / total_trips if total_trips > 0 else 0.0,
                total_revenue=total_revenue,
                total_trips=total_trips
            ))

        stats.sort(key=lambda s: (-s.total_passengers, s.train_code))

        return stats

    # ------------------------------------------------------------------
    # Time series
    # ------------------------------------------------------------------

    def time_series(self, start: DateLike, end: DateLike) -> List[TimeSeriesPoint]:
        """
        Daily passenger and revenue totals for all traffic in [start, end]

        Raises:
            InvalidRangeError: If end is before start
        """
        records = self.store.records_in_date_range(start, end)
        return _daily_points(records_to_frame(records))

    def station_time_series(
        self,
        station_id: int,
        start: DateLike,
        end: DateLike
    ) -> List[TimeSeriesPoint]:
        """
        Daily totals for a single station

        Raises:
            UnknownEntityError: If the station id is not in the store
            InvalidRangeError: If end is before start
        """
        self._require_station(station_id)
        start_date, end_date = validate_range(start, end)

        records = [
            r for r in self.store.records_for_station(station_id)
            if start_date <= r.date <= end_date
        ]
        return _daily_points(records_to_frame(records))

    def train_time_series(
        self,
        train_code: str,
        start: DateLike,
        end: DateLike
    ) -> List[TimeSeriesPoint]:
        """
        Daily totals for a single train

        Raises:
            UnknownEntityError: If the train is neither in the train table nor in any record
            InvalidRangeError: If end is before start
        """
        self._require_train(train_code)
        start_date, end_date = validate_range(start, end)

        records = [
            r for r in self.store.records_for_train(train_code)
            if start_date <= r.date <= end_date
        ]
        return _daily_points(records_to_frame(records))

    # ------------------------------------------------------------------
    # Correlation
    # ------------------------------------------------------------------

    @staticmethod
    def correlation_between(
        series_a: Sequence[TimeSeriesPoint],
        series_b: Sequence[TimeSeriesPoint]
    ) -> Tuple[float, int]:
        """
        Pearson correlation of two daily series on their common dates

        Returns:
            (coefficient, number of common dates)
        """
        values_b = {p.date: p.passengers for p in series_b}
        common = sorted(p.date for p in series_a if p.date in values_b)
        values_a = {p.date: p.passengers for p in series_a}

        x = [values_a[d] for d in common]
        y = [values_b[d] for d in common]

        return pearson_correlation(x, y), len(common)

    def _pairwise_correlations(
        self,
        daily: pd.DataFrame,
        labels: Dict,
        min_common_dates: int,
        threshold: float
    ) -> List[CorrelationPair]:
        """Correlate every pair of columns of a date x entity table"""
        pairs = []

        for key_a, key_b in combinations(sorted(daily.columns), 2):
            both = daily[[key_a, key_b]].dropna()
            if len(both) <= min_common_dates:
                continue

            r = pearson_correlation(both[key_a].tolist(), both[key_b].tolist())
            if abs(r) > threshold:
                pairs.append(CorrelationPair(
                    first=str(labels.get(key_a, key_a)),
                    second=str(labels.get(key_b, key_b)),
                    coefficient=r,
                    common_dates=len(both)
                ))

        return pairs

    def station_correlations(
        self,
        min_common_dates: Optional[int] = None,
        threshold: Optional[float] = None,
        diagnostics: Optional[Diagnostics] = None
    ) -> List[CorrelationPair]:
        """
        Station pairs whose daily totals are significantly correlated

        A pair is considered when the stations share more than
        min_common_dates dates and reported when |r| > threshold.
        """
        min_common_dates = self.min_common_dates if min_common_dates is None else min_common_dates
        threshold = self.correlation_threshold if threshold is None else threshold

        df = records_to_frame(self.store.records)
        if df.empty:
            return []

        df = self._with_known_stations(df, diagnostics, 'Station correlations')
        if df.empty:
            return []

        daily = df.pivot_table(
            index='date', columns='station_id', values='total_passengers', aggfunc='sum'
        )

        pairs = self._pairwise_correlations(
            daily, self._station_names(), min_common_dates, threshold
        )

        self.logger.info(f"Found {len(pairs)} significant station correlations")

        return pairs

    def train_correlations(
        self,
        min_common_dates: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> List[CorrelationPair]:
        """Train pairs whose daily totals are significantly correlated"""
        min_common_dates = self.min_common_dates if min_common_dates is None else min_common_dates
        threshold = self.correlation_threshold if threshold is None else threshold

        df = records_to_frame(self.store.records)
        if df.empty:
            return []

        daily = df.pivot_table(
            index='date', columns='train_code', values='total_passengers', aggfunc='sum'
        )

        pairs = self._pairwise_correlations(daily, {}, min_common_dates, threshold)

        self.logger.info(f"Found {len(pairs)} significant train correlations")

        return pairs

    def station_pair_correlation(
        self,
        station_a: int,
        station_b: int,
        min_common_dates: Optional[int] = None
    ) -> CorrelationPair:
        """
        Correlation of two specific stations' daily totals over all dates

        Raises:
            UnknownEntityError: If either station is not in the store
            InsufficientDataError: If they share too few dates
        """
        min_common_dates = self.min_common_dates if min_common_dates is None else min_common_dates

        first = self._require_station(station_a)
        second = self._require_station(station_b)

        series_a = _daily_points(records_to_frame(self.store.records_for_station(station_a)))
        series_b = _daily_points(records_to_frame(self.store.records_for_station(station_b)))

        r, common = self.correlation_between(series_a, series_b)
        if common <= min_common_dates:
            raise InsufficientDataError(
                f"Stations {first.name} and {second.name} share {common} dates; "
                f"more than {min_common_dates} required",
                required=min_common_dates + 1,
                available=common
            )

        return CorrelationPair(first=first.name, second=second.name, coefficient=r, common_dates=common)

    def flow_train_count_points(self, start: DateLike, end: DateLike) -> List[Tuple[int, int]]:
        """
        Per-date (distinct trains, passengers) pairs in [start, end]

        Dates where either value is zero are left out.
        """
        df = records_to_frame(self.store.records_in_date_range(start, end))
        if df.empty:
            return []

        daily = df.groupby('date').agg(
            trains=('train_code', 'nunique'),
            passengers=('total_passengers', 'sum')
        ).sort_index()

        return [
            (int(row.trains), int(row.passengers))
            for _, row in daily.iterrows()
            if row.trains > 0 and row.passengers > 0
        ]

    # ------------------------------------------------------------------
    # Revenue and efficiency
    # ------------------------------------------------------------------

    def station_revenue(self, diagnostics: Optional[Diagnostics] = None) -> Dict[str, float]:
        df = records_to_frame(self.store.records)
        if df.empty:
            return {}

        df = self._with_known_stations(df, diagnostics, 'Station revenue')
        revenue = df.groupby('station_name')['revenue'].sum().sort_index()
        return {name: float(value) for name, value in revenue.items()}

    def train_revenue(self) -> Dict[str, float]:
        df = records_to_frame(self.store.records)
        if df.empty:
            return {}

        revenue = df.groupby('train_code')['revenue'].sum().sort_index()
        return {code: float(value) for code, value in revenue.items()}

    def average_ticket_price(self) -> float:
        """Total revenue per passenger across the whole store"""
        total_passengers = self.store.total_passengers()
        if total_passengers <= 0:
            return 0.0
        return self.store.total_revenue() / total_passengers

    @staticmethod
    def _rank(scores: Iterable[Tuple[str, float]]) -> List[Tuple[str, float]]:
        return sorted(scores, key=lambda item: (-item[1], item[0]))

    def station_efficiency(self, diagnostics: Optional[Diagnostics] = None) -> List[Tuple[str, float]]:
        """Revenue per passenger for each station, best first"""
        return self._rank(
            (s.station_name, s.total_revenue / s.total_passengers if s.total_passengers > 0 else 0.0)
            for s in self.station_statistics(diagnostics)
        )

    def train_efficiency(self) -> List[Tuple[str, float]]:
        """Revenue per passenger for each train, best first"""
        return self._rank(
            (s.train_code, s.total_revenue / s.total_passengers if s.total_passengers > 0 else 0.0)
            for s in self.train_statistics()
        )

    # ------------------------------------------------------------------
    # Date range tallies
    # ------------------------------------------------------------------

    def station_flow_by_date_range(
        self,
        start: DateLike,
        end: DateLike,
        diagnostics: Optional[Diagnostics] = None
    ) -> Dict[str, int]:
        """Passengers per station name within [start, end]"""
        df = records_to_frame(self.store.records_in_date_range(start, end))
        if df.empty:
            return {}

        df = self._with_known_stations(df, diagnostics, 'Station flow by date range')
        totals = df.groupby('station_name')['total_passengers'].sum().sort_index()
        return {name: int(value) for name, value in totals.items()}

    def train_flow_by_date_range(self, start: DateLike, end: DateLike) -> Dict[str, int]:
        """Passengers per train code within [start, end]"""
        df = records_to_frame(self.store.records_in_date_range(start, end))
        if df.empty:
            return {}

        totals = df.groupby('train_code')['total_passengers'].sum().sort_index()
        return {code: int(value) for code, value in totals.items()}

    # ------------------------------------------------------------------
    # Peak analysis
    # ------------------------------------------------------------------

    def hourly_peak_analysis(self) -> Dict[int, int]:
        return self.store.hourly_passenger_stats()

    def daily_peak_analysis(self) -> Dict[int, int]:
        return self.store.daily_passenger_stats()

    def station_peak_analysis(self) -> Dict[str, int]:
        return self.store.station_passenger_stats()

    def station_hourly_patterns(self) -> Dict[str, Dict[int, int]]:
        """Hour -> passengers for every station in the store"""
        patterns = {}
        for station in self.store.stations:
            tally: Dict[int, int] = defaultdict(int)
            for record in self.store.records_for_station(station.station_id):
                if record.hour is not None:
                    tally[record.hour] += record.total_passengers
            patterns[station.name] = dict(sorted(tally.items()))
        return patterns

    def station_daily_patterns(self) -> Dict[str, Dict[int, int]]:
        """ISO weekday -> passengers for every station in the store"""
        patterns = {}
        for station in self.store.stations:
            tally: Dict[int, int] = defaultdict(int)
            for record in self.store.records_for_station(station.station_id):
                tally[record.day_of_week] += record.total_passengers
            patterns[station.name] = dict(sorted(tally.items()))
        return patterns

    # ------------------------------------------------------------------
    # Ticket analysis
    # ------------------------------------------------------------------

    def ticket_type_analysis(
        self,
        start: DateLike,
        end: DateLike,
        diagnostics: Optional[Diagnostics] = None
    ) -> List[TicketTypeSummary]:
        """
        Records, passengers, revenue and mean ticket price per ticket type

        Records at unknown stations are skipped and counted.

        Returns:
            Summaries sorted by total passengers (descending), then ticket type
        """
        df = records_to_frame(self.store.records_in_date_range(start, end))
        if df.empty:
            return []

        df = self._with_known_stations(df, diagnostics, 'ticket_type_analysis')
        if df.empty:
            return []

        grouped = df.groupby('ticket_type').agg(
            record_count=('ticket_type', 'size'),
            total_passengers=('total_passengers', 'sum'),
            total_revenue=('revenue', 'sum'),
            average_price=('ticket_price', 'mean')
        )

        result = [
            TicketTypeSummary(
                ticket_type=ticket_type,
                record_count=int(row.record_count),
                total_passengers=int(row.total_passengers),
                total_revenue=float(row.total_revenue),
                average_price=float(row.average_price)
            )
            for ticket_type, row in grouped.iterrows()
        ]

        result.sort(key=lambda t: (-t.total_passengers, t.ticket_type))

        return result

    def ticket_price_distribution(self, diagnostics: Optional[Diagnostics] = None) -> Dict[float, int]:
        """Passengers per price bucket (nearest 5 units by default), ascending"""
        records = self._known_station_records(self.store.records, diagnostics, 'ticket_price_distribution')
        distribution: Dict[float, int] = defaultdict(int)
        for record in records:
            distribution[price_bucket(record.ticket_price, self.price_bucket_size)] += record.total_passengers
        return dict(sorted(distribution.items()))

    def ticket_type_price_analysis(
        self,
        diagnostics: Optional[Diagnostics] = None
    ) -> Dict[str, Dict[float, int]]:
        """Passengers per (ticket type, price bucket), known stations only"""
        records = self._known_station_records(self.store.records, diagnostics, 'ticket_type_price_analysis')
        analysis: Dict[str, Dict[float, int]] = defaultdict(lambda: defaultdict(int))
        for record in records:
            bucket = price_bucket(record.ticket_price, self.price_bucket_size)
            analysis[record.normalized_ticket_type][bucket] += record.total_passengers

        return {
            ticket_type: dict(sorted(buckets.items()))
            for ticket_type, buckets in sorted(analysis.items())
        }

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def analysis_summary(self) -> Dict:
        """Headline numbers for the whole store"""
        summary = {
            'total_passengers': self.store.total_passengers(),
            'total_revenue': self.store.total_revenue(),
            'average_ticket_price': self.average_ticket_price(),
            'stations': len(self.store.stations),
            'trains': len(self.store.trains),
            'records': len(self.store),
            'peak_hour': None,
            'peak_hour_passengers': 0,
        }

        hourly = self.hourly_peak_analysis()
        if hourly:
            peak_hour = min(hourly, key=lambda hour: (-hourly[hour], hour))
            if hourly[peak_hour] > 0:
                summary['peak_hour'] = peak_hour
                summary['peak_hour_passengers'] = hourly[peak_hour]

        return summary
