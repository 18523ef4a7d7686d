from __future__ import annotations


class DashboardError(Exception):
    """Base class for dashboard failures."""


class UnknownReportTypeError(DashboardError, ValueError):
    pass


class DashboardLoadError(DashboardError):
    """Raised when a report snapshot could not be assembled at all."""
