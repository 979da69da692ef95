"""Passenger-flow forecasting"""

from railflow.models.evaluation import ModelEvaluation, evaluate_model
from railflow.models.parameters import ModelParameters

from .engine import FlowForecastEngine
from .results import ForecastPoint, ForecastResult
from .training import TrendCoefficients, train_model
from .tuning import TuningResult, candidate_parameters, optimize_parameters

__all__ = [
    'FlowForecastEngine',
    'ForecastPoint',
    'ForecastResult',
    'ModelEvaluation',
    'ModelParameters',
    'TrendCoefficients',
    'TuningResult',
    'candidate_parameters',
    'evaluate_model',
    'optimize_parameters',
    'train_model'
]
