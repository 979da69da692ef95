"""
Railflow

Passenger-flow analytics and short-horizon forecasting for rail transit.
Aggregates boarding/alighting records by station, train, date and ticket
type, and projects daily passenger counts with confidence bands.
"""

__version__ = "1.0.0"
__author__ = "Railflow Analytics Team"
