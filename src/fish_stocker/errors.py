"""Exception taxonomy for grid extraction."""

from __future__ import annotations


class StockerError(Exception):
    """Base class for every error raised by fish-stocker."""


class GridFetchError(StockerError):
    """The grid source could not deliver cells (network, HTTP, auth)."""


class UnknownProgramError(StockerError, ValueError):
    """A program name did not match any configured stocking program."""


class StructuralError(StockerError, ValueError):
    """The sheet layout is malformed; the whole extraction is abandoned."""


class HeaderShapeError(StructuralError):
    """The date-header block did not contain exactly two rows."""


class MonthOverflowError(StructuralError):
    """Day numbers rolled over more often than the month row allows."""


class RowLengthError(StockerError, ValueError):
    """A single schedule row does not line up with the date axis."""
