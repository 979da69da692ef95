"""Trend model training"""

from dataclasses import dataclass
from typing import Sequence, Union

from railflow.data.summaries import TimeSeriesPoint
from railflow.errors import InsufficientDataError
from railflow.utils.logging_config import get_logger
from railflow.utils.stats import linear_fit


logger = get_logger(__name__)


MIN_TRAINING_SAMPLES = 10


@dataclass(frozen=True)
class TrendCoefficients:
    """Linear trend y = intercept + slope * sample_index"""
    intercept: float
    slope: float
    sample_count: int

    def value_at(self, index: float) -> float:
        return self.intercept + self.slope * index


def train_model(
    series: Sequence[Union[TimeSeriesPoint, float]],
    min_samples: int = MIN_TRAINING_SAMPLES
) -> TrendCoefficients:
    """
    Fit a linear trend to a daily series

    Args:
        series: Time series points (passengers are used) or plain values
        min_samples: Minimum number of observations required

    Returns:
        TrendCoefficients for the series

    Raises:
        InsufficientDataError: If the series is shorter than min_samples
    """
    values = [
        float(p.passengers) if isinstance(p, TimeSeriesPoint) else float(p)
        for p in series
    ]

    if len(values) < min_samples:
        raise InsufficientDataError(
            f"Trend model needs at least {min_samples} samples, got {len(values)}",
            required=min_samples,
            available=len(values)
        )

    intercept, slope = linear_fit(list(range(len(values))), values)

    logger.debug(f"Trend model trained on {len(values)} samples (slope: {slope:+.3f})")

    return TrendCoefficients(intercept=intercept, slope=slope, sample_count=len(values))
