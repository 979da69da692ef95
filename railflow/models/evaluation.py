"""Forecast accuracy metrics"""

from dataclasses import dataclass, asdict
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class ModelEvaluation:
    mae: float = 0.0
    mse: float = 0.0
    rmse: float = 0.0
    mape: float = 0.0
    sample_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def evaluate_model(predictions: Sequence[float], actuals: Sequence[float]) -> ModelEvaluation:
    """
    Compare predicted values against realized actuals

    Both sequences are truncated to the shorter length. MAPE (in percent)
    is averaged only over positions where the actual value is positive.

    Args:
        predictions: Predicted values
        actuals: Realized values

    Returns:
        ModelEvaluation; all zeros with sample_count=0 for empty input
    """
    n = min(len(predictions), len(actuals))
    if n == 0:
        return ModelEvaluation()

    predicted = np.asarray(predictions[:n], dtype=float)
    actual = np.asarray(actuals[:n], dtype=float)

    errors = actual - predicted
    mae = float(np.mean(np.abs(errors)))
    mse = float(np.mean(errors ** 2))

    positive = actual > 0
    if positive.any():
        mape = float(np.mean(np.abs(errors[positive] / actual[positive])) * 100)
    else:
        mape = 0.0

    return ModelEvaluation(
        mae=mae,
        mse=mse,
        rmse=float(np.sqrt(mse)),
        mape=mape,
        sample_count=n
    )
