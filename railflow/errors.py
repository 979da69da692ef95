"""Exception hierarchy for Railflow"""


class RailflowError(Exception):
    """Base class for all Railflow errors"""


class InsufficientDataError(RailflowError):
    """Fewer samples than a statistic or forecast requires"""

    def __init__(self, message: str, required: int = None, available: int = None):
        super().__init__(message)
        self.required = required
        self.available = available


class UnknownEntityError(RailflowError):
    """A station id or train code could not be resolved"""

    def __init__(self, kind: str, key):
        super().__init__(f"Unknown {kind}: {key!r}")
        self.kind = kind
        self.key = key


class InvalidRangeError(RailflowError):
    """A date range is inverted or a date value could not be parsed"""
