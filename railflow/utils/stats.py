"""Numeric helpers shared by the aggregation and forecasting engines

Pure functions over plain sequences. Nothing here touches the store.
"""

import math
from typing import List, Sequence, Tuple

import numpy as np
from sklearn.linear_model import LinearRegression


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation coefficient

    r = (n·Σxy − Σx·Σy) / sqrt((n·Σx² − (Σx)²)(n·Σy² − (Σy)²))

    Returns 0.0 for mismatched or too-short inputs and when the denominator
    is zero (e.g. a constant series).
    """
    if len(x) != len(y) or len(x) < 2:
        return 0.0

    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    n = len(xs)

    numerator = n * np.sum(xs * ys) - np.sum(xs) * np.sum(ys)
    variance_term = (
        (n * np.sum(xs * xs) - np.sum(xs) ** 2) *
        (n * np.sum(ys * ys) - np.sum(ys) ** 2)
    )

    if variance_term <= 0:
        return 0.0

    denominator = math.sqrt(variance_term)
    if denominator == 0:
        return 0.0

    r = float(numerator / denominator)
    # Guard against rounding just outside [-1, 1]
    return max(-1.0, min(1.0, r))


def linear_fit(x: Sequence[float], y: Sequence[float]) -> Tuple[float, float]:
    """
    Ordinary least squares fit of y = intercept + slope * x

    Returns:
        (intercept, slope); slope is 0.0 when fewer than two points are given
    """
    if len(x) != len(y):
        raise ValueError(f"x and y differ in length ({len(x)} != {len(y)})")

    if len(x) == 0:
        return 0.0, 0.0
    if len(x) < 2:
        return float(y[0]), 0.0

    X = np.asarray(x, dtype=float).reshape(-1, 1)
    Y = np.asarray(y, dtype=float)

    model = LinearRegression()
    model.fit(X, Y)

    return float(model.intercept_), float(model.coef_[0])


def trend_slope(values: Sequence[float]) -> float:
    """OLS slope of values against their sample index"""
    if len(values) < 2:
        return 0.0
    _, slope = linear_fit(list(range(len(values))), values)
    return slope


def mean_of_last(values: Sequence[float], count: int) -> float:
    """Mean of the last min(count, len(values)) values; 0.0 for empty input"""
    if len(values) == 0 or count <= 0:
        return 0.0
    recent = np.asarray(values[-min(count, len(values)):], dtype=float)
    return float(recent.mean())


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for empty input"""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def moving_average(values: Sequence[float], window: int) -> List[float]:
    """
    Trailing moving average

    Returns one value per complete window, so the result is
    len(values) - window + 1 long, or empty when the series is too short.
    """
    if window <= 0 or len(values) < window:
        return []

    series = np.asarray(values, dtype=float)
    kernel = np.ones(window) / window
    return [float(v) for v in np.convolve(series, kernel, mode='valid')]


def exponential_smoothing(values: Sequence[float], alpha: float) -> List[float]:
    """
    Simple exponential smoothing

    s[0] = x[0]; s[t] = alpha * x[t] + (1 - alpha) * s[t-1]
    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be within [0, 1], got {alpha}")

    smoothed: List[float] = []
    for value in values:
        if not smoothed:
            smoothed.append(float(value))
        else:
            smoothed.append(alpha * float(value) + (1 - alpha) * smoothed[-1])

    return smoothed


def confidence_interval(residuals: Sequence[float], confidence: float = 0.95) -> float:
    """
    Half-width of a normal-approximation interval around residuals

    1.96 is the two-sided z for 95%, so a 0.95 request gets it; lower levels
    fall back to 1.645 (two-sided 90%).
    """
    if len(residuals) == 0:
        return 0.0

    z_score = 1.96 if confidence >= 0.95 else 1.645
    return z_score * standard_deviation(residuals)


def price_bucket(price: float, size: float = 5.0) -> float:
    """Round a price half-up to the nearest multiple of size"""
    return math.floor(price / size + 0.5) * size
