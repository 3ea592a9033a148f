"""Time-bucketed reads from the per-site telemetry tables."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import column, func, literal_column, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from src.sitewatch import config
from src.sitewatch.history.columns import sanitize_column, validate_table
from src.sitewatch.history.errors import InvalidQueryError, QueryFailedError
from src.sitewatch.history.sampling import Sampling, choose_sampling, parse_date, time_bounds

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMN = "timestamp"
BUCKET = "bucket"
HOUR_FORMATS = {
    "mysql": "%Y-%m-%d %H:00:00",
    "mariadb": "%Y-%m-%d %H:00:00",
    "sqlite": "%Y-%m-%d %H:00:00",
    "postgresql": "YYYY-MM-DD HH24:00:00",
}


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


class HistoricalQueryService:
    """Read a time series from ``table``, down-sampled by the date range.

    - more than 30 days: one row per day, each column averaged
    - more than 7 days: one row per hour, each column averaged
    - otherwise: every stored row

    Rows are ordered by time, capped at ``limit``, and leave out columns
    that have no value (missing key rather than zero).
    """

    def __init__(
        self,
        engine: Engine,
        default_limit: int = config.HISTORY_DEFAULT_LIMIT,
        max_limit: int = config.HISTORY_MAX_LIMIT,
    ) -> None:
        self.engine = engine
        self.default_limit = default_limit
        self.max_limit = max_limit

    def _limit(self, limit: Optional[Union[int, str]]) -> int:
        if limit is None or limit == "":
            return self.default_limit
        try:
            value = int(limit)
        except (TypeError, ValueError):
            raise InvalidQueryError(f"Invalid limit '{limit}'", details={"limit": limit})
        if not 1 <= value <= self.max_limit:
            raise InvalidQueryError(
                f"limit must be between 1 and {self.max_limit}", details={"limit": value}
            )
        return value

    def _hour_bucket(self, ts):
        dialect = self.engine.dialect.name
        fmt = HOUR_FORMATS.get(dialect)
        if fmt is None:
            raise QueryFailedError(f"Hourly sampling is not supported on {dialect}")
        if dialect == "sqlite":
            return func.strftime(fmt, ts)
        if dialect == "postgresql":
            return func.to_char(ts, fmt)
        return func.date_format(ts, fmt)

    def build_query(
        self,
        table_name: str,
        columns: Sequence[str],
        sampling: Sampling,
        start: date,
        end: date,
        limit: int,
    ) -> Select:
        """Select the time key first, then one expression per column, in order."""
        source = table(table_name, column(TIMESTAMP_COLUMN), *[column(name) for name in columns])
        ts = source.c[TIMESTAMP_COLUMN]
        lower, upper = time_bounds(start, end)

        if sampling is Sampling.RAW:
            return (
                select(ts, *[source.c[name] for name in columns])
                .where(ts.between(lower, upper))
                .order_by(ts.asc())
                .limit(limit)
            )

        bucket = func.date(ts) if sampling is Sampling.DAILY else self._hour_bucket(ts)
        # group/order by the alias; "timestamp" would resolve to the raw column in MySQL
        return (
            select(bucket.label(BUCKET), *[func.avg(source.c[name]).label(name) for name in columns])
            .where(ts.between(lower, upper))
            .group_by(literal_column(BUCKET))
            .order_by(literal_column(BUCKET).asc())
            .limit(limit)
        )

    def fetch(
        self,
        table_name: str,
        columns: Union[str, Iterable[str]],
        start_date: Union[str, date],
        end_date: Union[str, date],
        limit: Optional[Union[int, str]] = None,
        day_key: str = TIMESTAMP_COLUMN,
    ) -> List[Dict[str, Any]]:
        """Return the sampled series as a list of row dicts.

        Raises InvalidQueryError for bad parameters and QueryFailedError when the
        database fails. An empty list means the range simply holds no rows.
        """
        table_name = validate_table(table_name)
        if isinstance(columns, str):
            columns = [columns]
        names: List[str] = []
        for raw in columns:
            name = sanitize_column(raw)
            if name == TIMESTAMP_COLUMN:
                raise InvalidQueryError("The timestamp column is always returned", details={"original": raw})
            if name not in names:
                names.append(name)
        if not names:
            raise InvalidQueryError("At least one column is required")

        try:
            start = parse_date(start_date)
            end = parse_date(end_date)
        except (TypeError, ValueError, AttributeError):
            raise InvalidQueryError(
                "Dates must be formatted YYYY-MM-DD",
                details={"start": str(start_date), "end": str(end_date)},
            )

        limit = self._limit(limit)
        sampling = choose_sampling(start, end)
        stmt = self.build_query(table_name, names, sampling, start, end, limit)
        time_key = day_key if sampling is Sampling.DAILY else TIMESTAMP_COLUMN
        # position of each column in the result row, fixed for the whole query
        accessors: List[Tuple[str, int]] = [(name, index + 1) for index, name in enumerate(names)]

        logger.info(
            "Querying %s %s from %s to %s (%s, limit %d)",
            table_name, names, start, end, sampling.value, limit,
        )
        try:
            with self.engine.connect() as conn:
                result = conn.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.exception("Database error while querying %s", table_name)
            raise QueryFailedError(
                "Failed to fetch data from database", details={"details": str(e)}
            ) from e

        rows: List[Dict[str, Any]] = []
        for record in result:
            row: Dict[str, Any] = {time_key: _json_value(record[0])}
            for name, index in accessors:
                value = record[index]
                if value is not None:
                    row[name] = _json_value(value)
            rows.append(row)
        return rows
