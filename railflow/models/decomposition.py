"""Level + trend + seasonality forecaster for daily passenger counts"""

import math
from datetime import date, timedelta
from typing import List, Optional

import numpy as np
import pandas as pd

from railflow.errors import InsufficientDataError
from railflow.models.base import BaseForecaster
from railflow.models.parameters import ModelParameters
from railflow.utils.dates import parse_date
from railflow.utils.logging_config import get_logger
from railflow.utils.stats import linear_fit, mean_of_last, standard_deviation


logger = get_logger(__name__)


FORECAST_COLUMNS = [
    'date', 'label', 'predicted_passengers', 'confidence_level', 'lower_bound', 'upper_bound'
]


class DecompositionForecaster(BaseForecaster):
    """
    Heuristic decomposition forecaster

    Fitting extracts:
    - base level: mean of the last 7 observations
    - trend: OLS slope of the value against its sample index
    - seasonal pattern: the series lagged by one seasonality period
      (empty until the history covers two full periods)
    - spread: population standard deviation of the training series

    Each forecast day then applies a weekday/weekend factor, optional
    random jitter, and a 2% per-day growth factor. The confidence band
    widens by 10% of the spread per day of horizon.
    """

    LEVEL_WINDOW = 7
    WEEKEND_FACTOR = 0.8
    WEEKDAY_FACTOR = 1.1
    JITTER_LOW = 0.9
    JITTER_HIGH = 1.1
    GROWTH_RATE = 0.02
    WIDTH_GROWTH = 0.1
    CONFIDENCE_LEVEL = 0.95

    def __init__(
        self,
        params: Optional[ModelParameters] = None,
        rng: Optional[np.random.Generator] = None,
        jitter: bool = True,
        min_samples: int = 10
    ):
        """
        Initialize decomposition forecaster

        Args:
            params: Model parameters (seasonality period is used here)
            rng: Random generator for jitter; a fresh unseeded one if omitted
            jitter: Apply the random [0.9, 1.1] factor to each prediction
            min_samples: Minimum training observations required by fit()
        """
        super().__init__(model_name='Decomposition')
        self.params = params if params else ModelParameters()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.jitter = jitter
        self.min_samples = min_samples

        self.target_col = None
        self.sample_count = 0
        self.base_level = 0.0
        self.trend = 0.0
        self.seasonal_pattern: List[float] = []
        self.spread = 0.0
        self.last_date: Optional[date] = None

    def fit(self, df_train: pd.DataFrame, target_col: str = 'passengers') -> 'DecompositionForecaster':
        """
        Fit level, trend and seasonal components

        Args:
            df_train: Daily training data with 'date' and target columns
            target_col: Name of target column to forecast

        Returns:
            Self (for method chaining)

        Raises:
            InsufficientDataError: If fewer than min_samples rows are given
        """
        if 'date' not in df_train.columns:
            raise ValueError("DataFrame must have 'date' column")

        n = len(df_train)
        if n < self.min_samples:
            raise InsufficientDataError(
                f"{self.model_name} needs at least {self.min_samples} samples, got {n}",
                required=self.min_samples,
                available=n
            )

        logger.debug(f"Fitting {self.model_name} model for '{target_col}' on {n} samples")

        self.target_col = target_col

        df_sorted = df_train.sort_values('date')
        values = df_sorted[target_col].astype(float).tolist()
        period = self.params.seasonality_period

        self.sample_count = n
        self.base_level = mean_of_last(values, self.LEVEL_WINDOW)
        intercept, self.trend = linear_fit(list(range(n)), values)
        self.seasonal_pattern = values[:n - period] if n >= 2 * period else []
        self.spread = standard_deviation(values)
        self.last_date = parse_date(pd.Timestamp(df_sorted['date'].iloc[-1]).date())

        self.is_fitted = True

        # In-sample fit of the trend line
        fitted = [intercept + self.trend * i for i in range(n)]
        self.training_metrics = self._calculate_metrics(values, fitted)

        logger.debug(
            f"✅ {self.model_name} fitted (level: {self.base_level:,.1f}, "
            f"trend: {self.trend:+,.2f}/day, seasonal points: {len(self.seasonal_pattern)})"
        )

        return self

    def base_component(self, offset: int) -> float:
        """
        Level + trend + seasonal value for a forecast offset

        This is the prediction before the day-of-week, jitter and growth
        factors are applied.
        """
        if not self.is_fitted:
            raise ValueError("Model must be fitted before making predictions")

        base = self.base_level + self.trend * (offset + 1)

        season_index = (self.sample_count + offset) % self.params.seasonality_period
        if season_index < len(self.seasonal_pattern):
            base += self.seasonal_pattern[season_index]

        return base

    def day_factor(self, day: date) -> float:
        return self.WEEKEND_FACTOR if day.isoweekday() > 5 else self.WEEKDAY_FACTOR

    def _jitter(self) -> float:
        if not self.jitter:
            return 1.0
        return float(self.rng.uniform(self.JITTER_LOW, self.JITTER_HIGH))

    def confidence_width(self, offset: int) -> float:
        return self.spread * (1 + self.WIDTH_GROWTH * offset)

    def predict(self, n_periods: int, start: Optional[date] = None) -> pd.DataFrame:
        """
        Generate daily forecasts with confidence bounds

        Args:
            n_periods: Number of days to forecast
            start: First forecast date (defaults to the day after training ends)

        Returns:
            DataFrame with date, label, predicted_passengers, confidence_level,
            lower_bound and upper_bound columns
        """
        if not self.is_fitted:
            raise ValueError("Model must be fitted before making predictions")

        start = parse_date(start) if start is not None else self.last_date + timedelta(days=1)

        rows = []
        for offset in range(max(n_periods, 0)):
            day = start + timedelta(days=offset)

            value = self.base_component(offset)
            value *= self.day_factor(day)
            value *= self._jitter()
            value *= 1 + self.GROWTH_RATE * offset

            # Round half up on the clamped, non-negative value
            predicted = int(math.floor(max(0.0, value) + 0.5))
            width = self.confidence_width(offset)

            rows.append({
                'date': day,
                'label': day.isoformat(),
                'predicted_passengers': predicted,
                'confidence_level': self.CONFIDENCE_LEVEL,
                'lower_bound': max(0.0, predicted - width),
                'upper_bound': predicted + width,
            })

        logger.debug(f"{self.model_name} forecast complete: {len(rows)} days from {start}")

        return pd.DataFrame(rows, columns=FORECAST_COLUMNS)
