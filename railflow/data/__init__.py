"""Flow records, storage, loading and aggregation"""

from .aggregators import FlowAggregator, records_to_frame, summaries_to_frame
from .loaders import FlowDataLoader, LoadReport
from .records import FlowRecord, Station, Train
from .store import FlowStore
from .summaries import (
    CorrelationPair,
    Diagnostics,
    StationSummary,
    TicketTypeSummary,
    TimeSeriesPoint,
    TrainSummary,
)

__all__ = [
    'FlowAggregator',
    'FlowDataLoader',
    'FlowRecord',
    'FlowStore',
    'LoadReport',
    'Station',
    'Train',
    'CorrelationPair',
    'Diagnostics',
    'StationSummary',
    'TicketTypeSummary',
    'TimeSeriesPoint',
    'TrainSummary',
    'records_to_frame',
    'summaries_to_frame'
]
