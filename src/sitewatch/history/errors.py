from typing import Any, Dict, Optional


class HistoryError(Exception):
    """Base class for historical data failures."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidQueryError(HistoryError):
    """Bad or missing query parameters; nothing was sent to the database."""

    status_code = 400


class QueryFailedError(HistoryError):
    """The database could not be reached or rejected the query."""

    status_code = 500
