"""Forecast model parameters"""

from dataclasses import dataclass, asdict
from typing import Optional

from railflow.utils.config import ConfigLoader


@dataclass(frozen=True)
class ModelParameters:
    """
    Settings for one forecast call

    window_size is the number of days of history used for training.
    alpha, beta and gamma are smoothing weights carried for the parameter
    search; the decomposition forecaster itself does not read them.
    """
    window_size: int = 30
    alpha: float = 0.3
    beta: float = 0.1
    gamma: float = 0.1
    seasonality_period: int = 7

    def __post_init__(self):
        if self.window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {self.window_size}")
        if self.seasonality_period < 1:
            raise ValueError(f"seasonality_period must be at least 1, got {self.seasonality_period}")

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> 'ModelParameters':
        """Read defaults from the forecast section of the configuration"""
        if config is None:
            return cls()

        defaults = cls()
        return cls(
            window_size=int(config.get('forecast.window_size', defaults.window_size)),
            alpha=float(config.get('forecast.alpha', defaults.alpha)),
            beta=float(config.get('forecast.beta', defaults.beta)),
            gamma=float(config.get('forecast.gamma', defaults.gamma)),
            seasonality_period=int(config.get('forecast.seasonality_period', defaults.seasonality_period))
        )

    def to_dict(self) -> dict:
        return asdict(self)
