"""Errors raised by the pipeline analytics engine.

A missing cost basis is not an error: margin calculation defines it as a zero
contribution, so there is no exception for it here.
"""


class AnalyticsError(Exception):
    """Base class for every analytics engine error."""


class InvalidRange(AnalyticsError, ValueError):
    """Window bounds are missing or out of order."""


class UnknownEntity(AnalyticsError, LookupError):
    """The read store does not know the requested entity name."""

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"Unknown entity: {entity!r}")


class MetricUnavailable(AnalyticsError):
    """A single aggregate read failed.

    Engines catch this per metric so one failing read degrades only its own
    figure to "unavailable".
    """

    def __init__(self, metric: str, reason: str = "") -> None:
        self.metric = metric
        self.reason = reason
        message = f"Metric {metric!r} is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
