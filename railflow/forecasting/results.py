"""
Forecast output types.

A ForecastResult is produced fresh by every forecast call and never cached.
"""
from dataclasses import dataclass, asdict
from datetime import date
from typing import Tuple

import pandas as pd

from railflow.errors import InsufficientDataError


STATUS_OK = 'ok'
STATUS_INSUFFICIENT_DATA = 'insufficient_data'


@dataclass(frozen=True)
class ForecastPoint:
    label: str
    date: date
    predicted_passengers: int
    confidence_level: float
    lower_bound: float
    upper_bound: float

    @property
    def width(self) -> float:
        return self.upper_bound - self.predicted_passengers

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ForecastResult:
    """
    Outcome of a forecast call.

    When the training window held too little history, status is
    'insufficient_data' and points is empty; callers branch on
    `insufficient_data` or call `raise_for_status()`.
    """
    points: Tuple[ForecastPoint, ...] = ()
    training_samples: int = 0
    status: str = STATUS_OK
    required_samples: int = 0

    @classmethod
    def insufficient(cls, training_samples: int, required_samples: int) -> 'ForecastResult':
        return cls(
            points=(),
            training_samples=training_samples,
            status=STATUS_INSUFFICIENT_DATA,
            required_samples=required_samples
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, training_samples: int) -> 'ForecastResult':
        points = tuple(
            ForecastPoint(
                label=row.label,
                date=row.date,
                predicted_passengers=int(row.predicted_passengers),
                confidence_level=float(row.confidence_level),
                lower_bound=float(row.lower_bound),
                upper_bound=float(row.upper_bound)
            )
            for row in df.itertuples(index=False)
        )
        return cls(points=points, training_samples=training_samples)

    @property
    def insufficient_data(self) -> bool:
        return self.status == STATUS_INSUFFICIENT_DATA

    def raise_for_status(self) -> 'ForecastResult':
        if self.insufficient_data:
            raise InsufficientDataError(
                f"Forecast needs at least {self.required_samples} training samples, "
                f"got {self.training_samples}",
                required=self.required_samples,
                available=self.training_samples
            )
        return self

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [p.to_dict() for p in self.points],
            columns=['label', 'date', 'predicted_passengers', 'confidence_level',
                     'lower_bound', 'upper_bound']
        )

    def __len__(self) -> int:
        return len(self.points)
