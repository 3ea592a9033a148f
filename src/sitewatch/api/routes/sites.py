"""Site and camera reachability endpoints."""

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from src.sitewatch.api.deps import get_site_catalog
from src.sitewatch.api.schemas import ErrorResponse, SiteStatus
from src.sitewatch.sites.catalog import SiteConfig, find_site
from src.sitewatch.sites.status import all_site_statuses, site_status

logger = logging.getLogger(__name__)
router = APIRouter(tags=["sites"])


@router.get(
    "/site-status",
    response_model=Union[SiteStatus, List[SiteStatus]],
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Online status of one site, or of all sites",
)
def get_site_status(
    siteId: Optional[str] = Query(default=None, description="Site id, e.g. f21; omit for all sites"),
    sites: List[SiteConfig] = Depends(get_site_catalog),
):
    """Probe the site host and its cameras; all sites are probed five at a time."""
    try:
        if siteId:
            site = find_site(siteId, sites)
            if site is None:
                return JSONResponse(status_code=404, content={"error": "Site not found"})
            return site_status(site)
        return all_site_statuses(sites)
    except Exception as e:
        logger.exception("Failed to check site status")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to check site status", "details": str(e)},
        )


@router.get("/sites", response_model=List[SiteConfig], summary="Configured sites")
def list_sites(sites: List[SiteConfig] = Depends(get_site_catalog)):
    return sites
