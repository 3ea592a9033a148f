"""Historical telemetry endpoints - read from the site tables in MySQL."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from src.sitewatch.api.deps import get_history_service
from src.sitewatch.api.schemas import ErrorResponse
from src.sitewatch.history.columns import columns_for, table_name_for
from src.sitewatch.history.errors import HistoryError, InvalidQueryError
from src.sitewatch.history.query import HistoricalQueryService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["history"])

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def _error_response(error: HistoryError, query_params: dict) -> JSONResponse:
    content = {"error": error.message, **error.details}
    if error.status_code >= 500:
        content["query_params"] = query_params
        content.setdefault("details", error.message)
    return JSONResponse(status_code=error.status_code, content=content)


@router.get("/data", responses=ERROR_RESPONSES, summary="One column of a site table over a date range")
def get_data(
    table_name: Optional[str] = Query(default=None, description="Site table, e.g. Al_Faqaa"),
    column_name: Optional[str] = Query(default=None, description="Column to read"),
    start_time: Optional[str] = Query(default=None, description="Start date, YYYY-MM-DD"),
    end_time: Optional[str] = Query(default=None, description="End date, YYYY-MM-DD (inclusive)"),
    limit: Optional[str] = Query(default=None, description="Maximum rows (default 5000)"),
    service: HistoricalQueryService = Depends(get_history_service),
):
    """Return ``[{timestamp|day, <column>: value}]``, daily or hourly means for long ranges."""
    received = {
        "table_name": table_name,
        "column_name": column_name,
        "start_time": start_time,
        "end_time": end_time,
    }
    logger.info(f"Received parameters: {received}, limit={limit}")

    if not table_name or not column_name or not start_time or not end_time:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required parameters", "received": received},
        )

    try:
        rows = service.fetch(table_name, column_name, start_time, end_time, limit=limit, day_key="day")
    except HistoryError as e:
        return _error_response(e, received)
    return rows


@router.get("/historical-data", responses=ERROR_RESPONSES, summary="A dashboard parameter (set of columns) for a site")
def get_historical_data(
    parameter: Optional[str] = Query(default=None, description="Current, Voltage, Power, Temperature, Humidity, Temperature & Humidity"),
    startDate: Optional[str] = Query(default=None, description="Start date, YYYY-MM-DD"),
    endDate: Optional[str] = Query(default=None, description="End date, YYYY-MM-DD (inclusive)"),
    timeStamp: Optional[str] = Query(default=None, description="Site key, e.g. f21 or Al_Faqaa"),
    limit: Optional[str] = Query(default=None, description="Maximum rows (default 5000)"),
    service: HistoricalQueryService = Depends(get_history_service),
):
    """Expand ``parameter`` to the site's columns and return the sampled series."""
    query_params = {
        "parameter": parameter,
        "startDate": startDate,
        "endDate": endDate,
        "timeStamp": timeStamp,
    }
    if not parameter or not startDate or not endDate:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required parameters", "received": query_params},
        )

    table = table_name_for(timeStamp or "")
    try:
        if not table:
            raise InvalidQueryError("Missing site key (timeStamp)")
        columns = columns_for(parameter, table)
        rows = service.fetch(table, columns, startDate, endDate, limit=limit)
    except HistoryError as e:
        return _error_response(e, query_params)
    return rows
