"""Exception and warning types raised across the panel pipeline."""


class ClimsecError(Exception):
    """Base class for pipeline errors."""


class SchemaError(ClimsecError, ValueError):
    """An input table is missing a required column or holds malformed values."""


class ModelFittingError(ClimsecError):
    """One regression specification could not be estimated."""

    def __init__(self, lag, reason):
        self.lag = lag
        self.reason = reason
        super().__init__(f"lag {lag}: {reason}")


class MergeGapWarning(UserWarning):
    """Speech entity-years without a matching disaster summary."""


class LagUnavailable(UserWarning):
    """A requested lag has no historical row for any observation."""
