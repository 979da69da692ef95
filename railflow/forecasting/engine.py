"""Passenger-flow forecasting engine"""

import logging
from datetime import date, timedelta
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from railflow.data.aggregators import FlowAggregator
from railflow.data.summaries import TimeSeriesPoint
from railflow.forecasting.results import ForecastResult
from railflow.forecasting.training import MIN_TRAINING_SAMPLES
from railflow.models.decomposition import DecompositionForecaster
from railflow.models.parameters import ModelParameters
from railflow.utils.config import ConfigLoader
from railflow.utils.dates import DateLike, parse_date
from railflow.utils.logging_config import get_logger


def series_to_frame(series: Sequence[TimeSeriesPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [p.to_dict() for p in series],
        columns=['date', 'passengers', 'revenue']
    )


class FlowForecastEngine:
    """
    Forecast daily passenger counts from the aggregator's time series

    The same algorithm serves the whole network, a single station or a
    single train; only the series used for training differs. Each call
    fits a fresh DecompositionForecaster, so the engine itself holds no
    fitted state.
    """

    def __init__(
        self,
        aggregator: FlowAggregator,
        params: Optional[ModelParameters] = None,
        config: Optional[ConfigLoader] = None,
        rng: Optional[np.random.Generator] = None,
        jitter: Optional[bool] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize forecasting engine

        Args:
            aggregator: Source of training time series
            params: Default model parameters (read from config if omitted)
            config: Configuration loader instance (defaults to the aggregator's)
            rng: Random generator for jitter (seeded from forecast.seed if omitted)
            jitter: Apply random jitter (forecast.jitter if omitted)
            logger: Logger for forecast progress
        """
        self.aggregator = aggregator
        self.config = config if config else aggregator.config
        self.logger = logger if logger else get_logger(__name__)

        self.params = params if params else ModelParameters.from_config(self.config)
        self.min_samples = int(self.config.get('forecast.min_samples', MIN_TRAINING_SAMPLES))
        self.jitter = bool(self.config.get('forecast.jitter', True)) if jitter is None else jitter

        if rng is None:
            rng = np.random.default_rng(self.config.get('forecast.seed'))
        self.rng = rng

    @staticmethod
    def training_window(start: date, params: ModelParameters):
        """Inclusive (first, last) training dates preceding a forecast start"""
        return start - timedelta(days=params.window_size), start - timedelta(days=1)

    def predict_passenger_flow(
        self,
        start: DateLike,
        days: int,
        params: Optional[ModelParameters] = None
    ) -> ForecastResult:
        """
        Forecast network-wide daily passengers

        Args:
            start: First forecast date
            days: Number of days to forecast
            params: Override the engine's default parameters

        Returns:
            ForecastResult (status 'insufficient_data' when history is short)
        """
        params = params if params else self.params
        start_date = parse_date(start)
        first, last = self.training_window(start_date, params)

        series = self.aggregator.time_series(first, last)
        return self.forecast_series(series, start_date, days, params, subject='all traffic')

    def predict_station_flow(
        self,
        station_id: int,
        start: DateLike,
        days: int,
        params: Optional[ModelParameters] = None
    ) -> ForecastResult:
        """
        Forecast daily passengers for one station

        Raises:
            UnknownEntityError: If the station id is not in the store
        """
        params = params if params else self.params
        start_date = parse_date(start)
        first, last = self.training_window(start_date, params)

        series = self.aggregator.station_time_series(station_id, first, last)
        return self.forecast_series(series, start_date, days, params, subject=f'station {station_id}')

    def predict_train_flow(
        self,
        train_code: str,
        start: DateLike,
        days: int,
        params: Optional[ModelParameters] = None
    ) -> ForecastResult:
        """
        Forecast daily passengers for one train

        Raises:
            UnknownEntityError: If the train code is not known
        """
        params = params if params else self.params
        start_date = parse_date(start)
        first, last = self.training_window(start_date, params)

        series = self.aggregator.train_time_series(train_code, first, last)
        return self.forecast_series(series, start_date, days, params, subject=f'train {train_code}')

    def forecast_series(
        self,
        series: Sequence[TimeSeriesPoint],
        start: DateLike,
        days: int,
        params: Optional[ModelParameters] = None,
        subject: str = 'series'
    ) -> ForecastResult:
        """
        Fit a decomposition on a training series and project it forward

        Args:
            series: Training time series
            start: First forecast date
            days: Number of days to forecast
            params: Model parameters
            subject: Description used in log messages

        Returns:
            ForecastResult
        """
        if days < 0:
            raise ValueError(f"days must be non-negative, got {days}")

        params = params if params else self.params

        if len(series) < self.min_samples:
            self.logger.warning(
                f"⚠️  Insufficient history to forecast {subject}: "
                f"{len(series)} samples, {self.min_samples} required"
            )
            return ForecastResult.insufficient(len(series), self.min_samples)

        model = DecompositionForecaster(
            params=params,
            rng=self.rng,
            jitter=self.jitter,
            min_samples=self.min_samples
        )
        model.fit(series_to_frame(series), 'passengers')

        forecast = model.predict(days, start=parse_date(start))

        self.logger.info(
            f"Forecast for {subject}: {days} days from {parse_date(start)} "
            f"({len(series)} training samples)"
        )

        return ForecastResult.from_frame(forecast, training_samples=len(series))
