"""
Error taxonomy for the scenario sweep.

All errors derive from ValueError so that ``run_step()`` treats them as
expected, known failures rather than crashes.
"""


class SaltSweepError(ValueError):
    """Base class for sweep configuration and data errors."""


class SchemaMismatch(SaltSweepError):
    """Category sets or column names disagree between inputs."""


class InvalidInput(SaltSweepError):
    """Negative, missing, or non-numeric input values."""

    def __init__(self, message, watershed=None):
        super().__init__(message)
        self.watershed = watershed


class DivisionByZero(SaltSweepError):
    """Median Total Salt is zero, so percent contributions are undefined."""

    def __init__(self, message, watershed=None):
        super().__init__(message)
        self.watershed = watershed
