"""Common interface for the daily passenger forecasters"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Optional

import pandas as pd

from railflow.models.evaluation import ModelEvaluation, evaluate_model
from railflow.utils.logging_config import get_logger


logger = get_logger(__name__)


class BaseForecaster(ABC):
    """
    Shared state and evaluation helpers for forecasters

    Subclasses learn from a frame of daily totals in fit() and return one
    row per future day from predict(), with at least 'date' and
    'predicted_passengers' columns.
    """

    def __init__(self, model_name: str):
        self.model_name = model_name
        self.is_fitted = False
        self.training_metrics = {}
        self.validation_metrics = {}

    @abstractmethod
    def fit(self, df_train: pd.DataFrame, target_col: str) -> 'BaseForecaster':
        """
        Learn from daily history

        Args:
            df_train: One row per day, with a 'date' column
            target_col: Column holding the daily passenger totals

        Returns:
            The fitted forecaster
        """

    @abstractmethod
    def predict(self, n_periods: int, start: Optional[date] = None) -> pd.DataFrame:
        """
        Forecast consecutive days

        Args:
            n_periods: How many days to produce
            start: First day; the day after the training history when omitted

        Returns:
            DataFrame ordered by date
        """

    def validate(self, df_val: pd.DataFrame, target_col: str) -> ModelEvaluation:
        """
        Score the forecaster against held-out days

        The forecast runs over the full span of df_val; only dates present in
        df_val are compared, so gaps in the holdout do not shift offsets.

        Args:
            df_val: Holdout rows with 'date' and target columns
            target_col: Column holding the actual totals

        Returns:
            ModelEvaluation over the matched dates
        """
        if df_val.empty:
            return ModelEvaluation()

        actual = df_val[['date', target_col]].copy()
        actual['date'] = pd.to_datetime(actual['date'])
        actual = actual.sort_values('date')

        first_date = actual['date'].iloc[0]
        n_periods = (actual['date'].iloc[-1] - first_date).days + 1

        logger.debug(f"Validating {self.model_name} on {len(actual)} samples")

        forecast = self.predict(n_periods, start=first_date.date())
        forecast = forecast[['date', 'predicted_passengers']].copy()
        forecast['date'] = pd.to_datetime(forecast['date'])

        matched = actual.merge(forecast, on='date', how='inner')

        evaluation = evaluate_model(
            matched['predicted_passengers'].tolist(),
            matched[target_col].tolist()
        )

        self.validation_metrics = evaluation.to_dict()

        return evaluation

    def _calculate_metrics(self, actuals, predicted) -> Dict[str, float]:
        """Accuracy metrics as a dict, ignoring positions where either side is NaN"""
        actuals = pd.Series(actuals, dtype=float).reset_index(drop=True)
        predicted = pd.Series(predicted, dtype=float).reset_index(drop=True)

        keep = actuals.notna() & predicted.notna()
        return evaluate_model(predicted[keep].tolist(), actuals[keep].tolist()).to_dict()

    def get_metadata(self) -> Dict:
        return {
            'model_name': self.model_name,
            'is_fitted': self.is_fitted,
            'training_metrics': dict(self.training_metrics),
            'validation_metrics': dict(self.validation_metrics),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model_name='{self.model_name}', is_fitted={self.is_fitted})"
