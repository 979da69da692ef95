"""Data loaders for Railflow"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from railflow.data.records import FlowRecord, Station, Train
from railflow.data.store import FlowStore
from railflow.errors import InvalidRangeError
from railflow.utils.config import ConfigLoader
from railflow.utils.dates import parse_date, parse_time
from railflow.utils.logging_config import get_logger


logger = get_logger(__name__)


# Canonical column names; config may map each to a differently named source column
STATION_COLUMNS = ['station_id', 'name', 'code', 'short_name', 'telecode']
TRAIN_COLUMNS = ['code', 'train_code', 'capacity', 'yearly_capacity']
FLOW_COLUMNS = [
    'line_code', 'train_code', 'station_id', 'date', 'arrival_time',
    'departure_time', 'boarding', 'alighting', 'ticket_type', 'ticket_price',
    'revenue', 'origin_station', 'destination_station'
]

COUNT_COLUMNS = ['boarding', 'alighting']
AMOUNT_COLUMNS = ['ticket_price', 'revenue']

DEFAULT_FILES = {
    'stations': 'stations.csv',
    'trains': 'trains.csv',
    'flows': 'passenger_flows.csv',
}


@dataclass
class LoadReport:
    """Row-level outcome of loading a flow file"""
    rows_read: int = 0
    records_loaded: int = 0
    invalid_dates: int = 0
    invalid_station_ids: int = 0
    malformed_rows: int = 0
    examples: List[str] = field(default_factory=list)

    @property
    def rows_skipped(self) -> int:
        return self.invalid_dates + self.invalid_station_ids + self.malformed_rows

    def note(self, message: str, limit: int = 5):
        if len(self.examples) < limit:
            self.examples.append(message)


def _unparsable_numbers(row) -> List[str]:
    """Names of count or amount fields that did not parse; counts must be whole numbers"""
    bad = [
        col for col in COUNT_COLUMNS
        if pd.isna(getattr(row, col)) or not float(getattr(row, col)).is_integer()
    ]
    bad.extend(col for col in AMOUNT_COLUMNS if pd.isna(getattr(row, col)))
    return bad


class FlowDataLoader:
    """
    Load stations, trains and passenger-flow records from delimited files

    Handles:
    - Column renaming from source headers to canonical names (config driven)
    - Date parsing (YYYYMMDD, YYYY-MM-DD, YYYY/MM/DD, MM/DD/YYYY)
    - Time parsing (HHMM, HH:MM)
    - Skipping and counting rows that cannot form a valid record
    """

    def __init__(self, config: Optional[ConfigLoader] = None, data_path: Optional[Path] = None):
        """
        Initialize data loader

        Args:
            config: Configuration loader instance
            data_path: Directory holding the CSV files (overrides config)
        """
        self.config = config if config else ConfigLoader.from_dict({})
        if data_path is not None:
            self.data_path = Path(data_path)
        else:
            self.data_path = self.config.get_path('data.raw_path', 'data/raw')
        self.encoding = self.config.get('data.encoding', 'utf-8')
        self.delimiter = self.config.get('data.delimiter', ',')
        logger.info(f"Data loader initialized with path: {self.data_path}")

    def _file_path(self, kind: str, file_name: Optional[str]) -> Path:
        if file_name is None:
            file_name = self.config.get(f'data.{kind}_file', DEFAULT_FILES[kind])

        file_path = Path(file_name)
        if not file_path.is_absolute():
            file_path = self.data_path / file_path

        if not file_path.exists():
            raise FileNotFoundError(f"{kind.capitalize()} file not found: {file_path}")

        return file_path

    def _read_csv(self, kind: str, file_path: Path, columns: List[str]) -> pd.DataFrame:
        """Read a file as strings and rename mapped columns to canonical names"""
        df = pd.read_csv(
            file_path,
            dtype=str,
            keep_default_na=False,
            encoding=self.encoding,
            sep=self.delimiter
        )
        df.columns = [str(c).strip() for c in df.columns]

        mapping: Dict[str, str] = self.config.get(f'data.columns.{kind}', {}) or {}
        rename = {source: canonical for canonical, source in mapping.items() if source in df.columns}
        df = df.rename(columns=rename)

        for col in columns:
            if col not in df.columns:
                df[col] = ''

        return df[columns]

    def load_stations(self, file_name: Optional[str] = None) -> List[Station]:
        """
        Load station master data

        Rows without a positive id or a name are dropped.
        """
        file_path = self._file_path('stations', file_name)
        logger.info(f"Loading stations from: {file_path}")

        df = self._read_csv('stations', file_path, STATION_COLUMNS)
        df['station_id'] = pd.to_numeric(df['station_id'], errors='coerce')
        for col in COUNT_COLUMNS:
            df[col] = pd.to_numeric(df[col].str.strip(), errors='coerce')
        for col in AMOUNT_COLUMNS:
            # A blank price or revenue cell means "not recorded"
            blank = df[col].str.strip() == ''
            df[col] = pd.to_numeric(df[col].str.strip(), errors='coerce').mask(blank, 0.0)

        records: List[FlowRecord] = []

        for idx, row in enumerate(df.itertuples(index=False), start=2):  # header is line 1
            if pd.isna(row.station_id) or row.station_id <= 0:
                report.invalid_station_ids += 1
                report.note(f"line {idx}: invalid station id {row.station_id!r}")
                continue

            try:
                flow_date = parse_date(row.date)
            except InvalidRangeError as e:
                report.invalid_dates += 1
                report.note(f"line {idx}: {e}")
                continue

            unparsable = _unparsable_numbers(row)
            if unparsable:
                report.malformed_rows += 1
                report.note(f"line {idx}: unparsable {', '.join(unparsable)}")
                continue

            try:
                record = FlowRecord(
                    line_code=row.line_code.strip(),
                    train_code=row.train_code.strip(),
                    station_id=int(row.station_id),
                    date=flow_date,
                    arrival_time=parse_time(row.arrival_time),
                    departure_time=parse_time(row.departure_time),
                    boarding=int(row.boarding),
                    alighting=int(row.alighting),
                    ticket_type=row.ticket_type.strip(),
                    ticket_price=float(row.ticket_price),
                    revenue=float(row.revenue),
                    origin_station=row.origin_station.strip(),
                    destination_station=row.destination_station.strip()
                )
            except ValueError as e:
                report.malformed_rows += 1
                report.note(f"line {idx}: {e}")
                continue

            records.append(record)

        report.records_loaded = len(records)

        if report.rows_skipped:
            logger.warning(
                f"⚠️  Skipped {report.rows_skipped:,} of {report.rows_read:,} rows "
                f"(invalid dates: {report.invalid_dates}, invalid station ids: "
                f"{report.invalid_station_ids}, malformed: {report.malformed_rows})"
            )
            for example in report.examples:
                logger.debug(f"  {example}")

        logger.info(f"Loaded {len(records):,} flow records from {report.rows_read:,} rows")

        return records, report

    def load_store(self) -> Tuple[FlowStore, LoadReport]:
        """
        Load all three files and build a FlowStore

        Returns:
            (store, flow load report)
        """
        stations = self.load_stations()
        trains = self.load_trains()
        records, report = self.load_flows()

        store = FlowStore(records=records, stations=stations, trains=trains)

        logger.info(
            f"✅ Data loaded: {len(stations)} stations, {len(trains)} trains, "
            f"{len(records):,} flow records"
        )

        return store, report
