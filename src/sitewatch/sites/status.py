"""Online/offline status for sites and their cameras."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from src.sitewatch import config
from src.sitewatch.sites import reachability
from src.sitewatch.sites.catalog import SiteConfig

logger = logging.getLogger(__name__)


def _camera_entries(site: SiteConfig, status: Optional[Dict[str, bool]]) -> List[Dict[str, Any]]:
    cameras = []
    for camera in site.cameras:
        entry = camera.model_dump(by_alias=True)
        if status is None:
            entry["status"] = "unknown"
        else:
            entry["status"] = "online" if status.get(camera.id) else "offline"
        cameras.append(entry)
    return cameras


def site_status(site: SiteConfig, timeout: float = config.PROBE_TIMEOUT, probe_cameras_offline: bool = True) -> Dict[str, Any]:
    """Probe a site and its cameras.

    With ``probe_cameras_offline=False`` cameras of an unreachable site are
    reported as ``"unknown"`` without being probed.
    """
    online = reachability.is_host_reachable(site.ip_address, timeout)
    camera_status = None
    if online or probe_cameras_offline:
        camera_status = reachability.check_hosts_status(
            {camera.id: camera.ip_address for camera in site.cameras}, timeout
        )
    return {
        "id": site.id,
        "name": site.name,
        "status": "online" if online else "offline",
        "cameras": _camera_entries(site, camera_status),
    }


def all_site_statuses(
    sites: List[SiteConfig],
    batch_size: int = config.PROBE_BATCH_SIZE,
    timeout: float = config.PROBE_TIMEOUT,
) -> List[Dict[str, Any]]:
    """Status of every site, probing ``batch_size`` sites at a time."""
    results: List[Dict[str, Any]] = []
    with ThreadPoolExecutor(max_workers=batch_size) as pool:
        for i in range(0, len(sites), batch_size):
            batch = sites[i:i + batch_size]
            futures = [pool.submit(site_status, site, timeout, False) for site in batch]
            results.extend(future.result() for future in futures)
            logger.debug("Probed sites %d-%d of %d", i + 1, i + len(batch), len(sites))
    return results
