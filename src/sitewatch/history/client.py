"""Dashboard-side reader for the historical data endpoint."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

import pandas as pd
import requests

from src.sitewatch import config
from src.sitewatch.history.errors import HistoryError

logger = logging.getLogger(__name__)

TIME_KEY = "timestamp"


class HistoryRequestError(HistoryError):
    """The historical data endpoint answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: int = 0, details: Optional[Dict] = None) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class HistoricalClient:
    """Fetch several columns in parallel and join them on the timestamp.

    Requests are grouped by ``key`` (one key per chart, e.g. per browser
    session). Within a key only the most recent ``fetch`` counts: when a
    newer one has started, the older result is discarded and ``fetch``
    returns None. Fetches under different keys never affect each other.
    """

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        max_workers: int = 8,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self._columns_pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="history-col")
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def _next_generation(self, key: str) -> int:
        with self._lock:
            generation = self._generations.get(key, 0) + 1
            self._generations[key] = generation
            return generation

    def is_current(self, key: str, generation: int) -> bool:
        with self._lock:
            return self._generations.get(key) == generation

    def forget(self, key: str) -> None:
        """Drop the request counter kept for ``key``."""
        with self._lock:
            self._generations.pop(key, None)

    def fetch_column(self, table: str, column: str, start: str, end: str, limit: Optional[int] = None) -> pd.DataFrame:
        params = {"table_name": table, "column_name": column, "start_time": start, "end_time": end}
        if limit is not None:
            params["limit"] = limit
        try:
            response = self.session.get(f"{self.base_url}/api/data", params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise HistoryRequestError(f"Could not reach historical data API: {e}") from e

        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = {"error": response.text}
            raise HistoryRequestError(
                body.get("error", "Historical data request failed"),
                status_code=response.status_code,
                details=body,
            )
        return rows_to_frame(response.json(), [column])

    def fetch(
        self,
        table: str,
        columns: Sequence[str],
        start: str,
        end: str,
        limit: Optional[int] = None,
        key: str = "default",
    ) -> Optional[pd.DataFrame]:
        """Joined frame for ``columns``, or None when a newer fetch for ``key`` superseded this one."""
        generation = self._next_generation(key)
        futures = [
            self._columns_pool.submit(self.fetch_column, table, column, start, end, limit)
            for column in columns
        ]
        frames = [future.result() for future in futures]
        if not self.is_current(key, generation):
            logger.debug("Discarding superseded history result for %s (%s)", table, key)
            return None
        return join_frames(frames)

    def close(self) -> None:
        self._columns_pool.shutdown(wait=False)
        self.session.close()


def rows_to_frame(rows: List[Dict], columns: Sequence[str]) -> pd.DataFrame:
    """Rows from the API -> numeric frame indexed by timestamp (``day`` is renamed)."""
    frame = pd.DataFrame(rows)
    if "day" in frame.columns:
        frame = frame.rename(columns={"day": TIME_KEY})
    if frame.empty or TIME_KEY not in frame.columns:
        empty = pd.DataFrame(columns=list(columns), dtype=float)
        empty.index = pd.DatetimeIndex([], name=TIME_KEY)
        return empty
    frame[TIME_KEY] = pd.to_datetime(frame[TIME_KEY])
    frame = frame.drop_duplicates(subset=TIME_KEY).set_index(TIME_KEY)
    for column in columns:
        if column in frame.columns:
            frame[column] = pd.to_numeric(frame[column], errors="coerce")
        else:
            frame[column] = float("nan")
    return frame[list(columns)]


def join_frames(frames: List[pd.DataFrame]) -> pd.DataFrame:
    """Outer-join per-column frames on the timestamp, ascending. Gaps stay NaN."""
    if not frames:
        return pd.DataFrame(index=pd.DatetimeIndex([], name=TIME_KEY))
    joined = pd.concat(frames, axis=1, join="outer").sort_index()
    joined.index.name = TIME_KEY
    return joined
