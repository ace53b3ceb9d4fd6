# invoice_dashboard/core/exceptions.py
"""
Service-level exceptions. Route handlers translate them to HTTP status codes:
NotFoundError -> 404, InvalidArgumentError -> 400, StoreUnavailableError -> 500.
"""


class DashboardError(Exception):
    pass


class NotFoundError(DashboardError):
    pass


class InvalidArgumentError(DashboardError):
    pass


class StoreUnavailableError(DashboardError):
    pass
