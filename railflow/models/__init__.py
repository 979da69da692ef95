"""Forecasting models"""

from .base import BaseForecaster
from .decomposition import DecompositionForecaster
from .evaluation import ModelEvaluation, evaluate_model
from .parameters import ModelParameters

__all__ = [
    'BaseForecaster',
    'DecompositionForecaster',
    'ModelEvaluation',
    'evaluate_model',
    'ModelParameters'
]
