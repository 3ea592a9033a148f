import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

import requests

from src.sitewatch import config

logger = logging.getLogger(__name__)


def is_host_reachable(host: str, timeout: float = config.PROBE_TIMEOUT, session: Optional[requests.Session] = None) -> bool:
    """HEAD ``http://<host>`` and report whether it answered with a success status."""
    http = session or requests
    try:
        response = http.head(f"http://{host}", timeout=timeout, allow_redirects=True)
        return response.ok
    except requests.RequestException as e:
        logger.debug("Host %s unreachable: %s", host, e)
        return False


def check_hosts_status(hosts: Dict[str, str], timeout: float = config.PROBE_TIMEOUT, max_workers: int = 8) -> Dict[str, bool]:
    """Probe several hosts in parallel. Maps each id to its reachability."""
    if not hosts:
        return {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(hosts))) as pool:
        futures = {key: pool.submit(is_host_reachable, host, timeout) for key, host in hosts.items()}
        return {key: future.result() for key, future in futures.items()}
