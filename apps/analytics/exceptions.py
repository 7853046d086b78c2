"""
Domain exceptions for analytics app.

Exception Hierarchy:
    AnalyticsServiceError (base)
    ├── InvalidDateRangeError
    ├── InvalidReportTypeError
    └── InvalidExportTypeError

Usage:
    from apps.analytics.exceptions import InvalidReportTypeError

    if report_type not in REPORT_TYPES:
        raise InvalidReportTypeError(f"Invalid report type: {report_type}")
"""


class AnalyticsServiceError(Exception):
    """
    Base exception for all analytics service errors.

    Views catch it to turn any reporting error into a 400:

        try:
            data = AnalyticsQueries.report('revenue')
        except AnalyticsServiceError as e:
            return Response({'error': str(e)}, status=400)
    """

    pass


class InvalidDateRangeError(AnalyticsServiceError):
    """Raised when start_date is after end_date."""

    pass


class InvalidReportTypeError(AnalyticsServiceError):
    """Raised when the report type is not revenue, bookings, users or cars."""

    pass


class InvalidExportTypeError(AnalyticsServiceError):
    """Raised when the export data type or format is not supported."""

    pass
