"""Parameter search for the decomposition forecaster

Evaluates an explicit list of candidate parameter sets on a validation
split of a daily series and keeps the one with the lowest RMSE.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from railflow.data.summaries import TimeSeriesPoint
from railflow.errors import InsufficientDataError
from railflow.forecasting.engine import series_to_frame
from railflow.forecasting.training import MIN_TRAINING_SAMPLES
from railflow.models.decomposition import DecompositionForecaster
from railflow.models.evaluation import ModelEvaluation
from railflow.models.parameters import ModelParameters
from railflow.utils.logging_config import get_logger


ALPHAS = (0.1, 0.2, 0.3, 0.4, 0.5)
BETAS = (0.05, 0.1, 0.15, 0.2)
# Smaller windows never hold the 10 days a fit needs
WINDOW_SIZES = (10, 14, 21, 30)

MAX_TEST_SIZE = 30
MIN_VALIDATION_POINTS = 5


@dataclass(frozen=True)
class TuningTrial:
    params: ModelParameters
    training_samples: int
    evaluation: Optional[ModelEvaluation] = None

    @property
    def evaluated(self) -> bool:
        return self.evaluation is not None


@dataclass(frozen=True)
class TuningResult:
    best_params: ModelParameters
    best_evaluation: ModelEvaluation
    trials: List[TuningTrial] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for trial in self.trials:
            row = trial.params.to_dict()
            row['training_samples'] = trial.training_samples
            row.update(trial.evaluation.to_dict() if trial.evaluated else {'rmse': np.nan})
            rows.append(row)
        return pd.DataFrame(rows)


def candidate_parameters(
    alphas: Sequence[float] = ALPHAS,
    betas: Sequence[float] = BETAS,
    window_sizes: Sequence[int] = WINDOW_SIZES,
    base: Optional[ModelParameters] = None
) -> List[ModelParameters]:
    """
    Enumerate the parameter grid

    Order is alpha, then beta, then window size; earlier candidates win
    RMSE ties.
    """
    base = base if base else ModelParameters()
    return [
        replace(base, alpha=alpha, beta=beta, window_size=window_size)
        for alpha in alphas
        for beta in betas
        for window_size in window_sizes
    ]


def optimize_parameters(
    series: Sequence[TimeSeriesPoint],
    candidates: Optional[Sequence[ModelParameters]] = None,
    rng: Optional[np.random.Generator] = None,
    jitter: bool = False,
    min_samples: int = MIN_TRAINING_SAMPLES,
    logger: Optional[logging.Logger] = None
) -> TuningResult:
    """
    Select the candidate with the lowest validation RMSE

    The validation split is series[test_size : 2 * test_size] with
    test_size = min(30, n // 2). Each candidate is trained on the points
    that fall in its window_size days before the first validation date.

    Args:
        series: Daily time series, ascending by date
        candidates: Parameter sets to try (the default grid if omitted)
        rng: Random generator for jitter
        jitter: Apply random jitter during validation forecasts
        min_samples: Minimum training points for a candidate to be evaluated
        logger: Logger for progress messages

    Returns:
        TuningResult with the winning parameters and every trial

    Raises:
        InsufficientDataError: If the validation split is too small or no
            candidate has enough training history
    """
    logger = logger if logger else get_logger(__name__)
    candidates = list(candidates) if candidates is not None else candidate_parameters()
    rng = rng if rng is not None else np.random.default_rng()

    points = sorted(series, key=lambda p: p.date)
    test_size = min(MAX_TEST_SIZE, len(points) // 2)
    validation = points[test_size:2 * test_size]

    if len(validation) < MIN_VALIDATION_POINTS:
        raise InsufficientDataError(
            f"Parameter search needs at least {MIN_VALIDATION_POINTS} validation points, "
            f"got {len(validation)} from {len(points)} samples",
            required=MIN_VALIDATION_POINTS,
            available=len(validation)
        )

    logger.info("=" * 60)
    logger.info("PARAMETER SEARCH")
    logger.info("=" * 60)
    logger.info(
        f"{len(candidates)} candidates, {len(validation)} validation days "
        f"({validation[0].date} to {validation[-1].date})"
    )

    df_val = series_to_frame(validation)
    validation_start = validation[0].date

    trials: List[TuningTrial] = []
    best: Optional[TuningTrial] = None

    for params in candidates:
        window_start = validation_start - timedelta(days=params.window_size)
        training = [p for p in points if window_start <= p.date < validation_start]

        if len(training) < min_samples:
            trials.append(TuningTrial(params=params, training_samples=len(training)))
            continue

        model = DecompositionForecaster(params=params, rng=rng, jitter=jitter, min_samples=min_samples)
        model.fit(series_to_frame(training), 'passengers')
        evaluation = model.validate(df_val, 'passengers')

        trial = TuningTrial(params=params, training_samples=len(training), evaluation=evaluation)
        trials.append(trial)

        if best is None or evaluation.rmse < best.evaluation.rmse:
            best = trial

    if best is None:
        raise InsufficientDataError(
            f"No candidate had {min_samples} training samples before {validation_start}",
            required=min_samples,
            available=max((t.training_samples for t in trials), default=0)
        )

    evaluated = sum(1 for t in trials if t.evaluated)
    logger.info(
        f"✅ Best parameters: window={best.params.window_size}, alpha={best.params.alpha}, "
        f"beta={best.params.beta} (RMSE: {best.evaluation.rmse:,.2f}, "
        f"{evaluated}/{len(trials)} candidates evaluated)"
    )

    return TuningResult(best_params=best.params, best_evaluation=best.evaluation, trials=trials)
