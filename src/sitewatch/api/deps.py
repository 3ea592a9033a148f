from typing import List

from src.sitewatch.db import get_engine
from src.sitewatch.history.query import HistoricalQueryService
from src.sitewatch.sites.catalog import SiteConfig, get_sites


def get_history_service() -> HistoricalQueryService:
    return HistoricalQueryService(get_engine())


def get_site_catalog() -> List[SiteConfig]:
    return get_sites()
