"""Static description of the monitored sites: hosts, cameras and live topics."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.sitewatch import config
from src.sitewatch.history.columns import table_name_for

logger = logging.getLogger(__name__)


class CameraConfig(BaseModel):
    id: str
    name: str
    ip_address: str = Field(alias="ipAddress")

    model_config = {"populate_by_name": True}


class SiteTopics(BaseModel):
    current: List[str] = []
    voltage: List[str] = []
    power: List[str] = []
    temperature: List[str] = []
    humidity: List[str] = []
    water: List[str] = []
    airflow: List[str] = []
    network: List[str] = []

    def all(self) -> List[str]:
        topics: List[str] = []
        for group in (self.current, self.voltage, self.power, self.temperature,
                      self.humidity, self.water, self.airflow, self.network):
            topics.extend(t for t in group if t not in topics)
        return topics


class SiteConfig(BaseModel):
    id: str
    name: str
    ip_address: str = Field(alias="ipAddress")
    status: str = "active"  # "active" or "development"
    cameras: List[CameraConfig] = []
    topics: SiteTopics = Field(default_factory=SiteTopics)

    model_config = {"populate_by_name": True}

    @property
    def table_name(self) -> str:
        return table_name_for(self.id)


def standard_topics(prefix: str, analysers: int = 1) -> SiteTopics:
    """Topic layout published by the site gateways."""
    topics = SiteTopics(
        temperature=[f"{prefix}/Env/T{i}" for i in range(1, 5)],
        humidity=[f"{prefix}/Env/H{i}" for i in range(1, 5)],
        water=[f"{prefix}/Water Level"],
        airflow=[f"{prefix}/Airflow"],
        network=[f"{prefix}/Network"],
    )
    for n in range(1, analysers + 1):
        pa = f"{prefix}/PA{n}"
        topics.current += [f"{pa}/Current L{i}" for i in range(1, 4)]
        topics.voltage += [f"{pa}/Phase V L{i}" for i in range(1, 4)] + [f"{pa}/Neutral V"]
        topics.power += [f"{pa}/Active Power L{i}" for i in range(1, 4)] + [f"{pa}/Total Active Power"]
        topics.power += [f"{pa}/Frequency"]
    return topics


def _site(site_id: str, name: str, ip: str, cameras: int = 2, analysers: int = 1, status: str = "active") -> SiteConfig:
    prefix = site_id.upper()
    octets = ip.rsplit(".", 1)[0]
    return SiteConfig(
        id=site_id,
        name=name,
        ip_address=ip,
        status=status,
        cameras=[
            CameraConfig(id=f"{site_id}-cam{i}", name=f"Camera {i}", ip_address=f"{octets}.{100 + i}")
            for i in range(1, cameras + 1)
        ],
        topics=standard_topics(prefix, analysers),
    )


DEFAULT_SITES: List[SiteConfig] = [
    _site("f08", "F08: BK1", "10.20.8.1"),
    _site("f09", "F09: Liwa 2", "10.20.9.1"),
    _site("f10", "F10: Harz 1", "10.20.10.1"),
    _site("f11", "F11: Harz 2", "10.20.11.1"),
    _site("f12", "F12: Al Hayeer", "10.20.12.1"),
    _site("f14", "F14: Omar 1", "10.20.14.1"),
    _site("f15", "F15: Omar 2", "10.20.15.1"),
    _site("f16", "F16: Harz 3", "10.20.16.1"),
    _site("f17", "F17: BK2", "10.20.17.1"),
    _site("f18", "F18: BK3", "10.20.18.1"),
    _site("f19", "F19: Wagan", "10.20.19.1"),
    _site("f20", "F20: Mafraq", "10.20.20.1"),
    _site("f21", "F21: Al Faqah", "10.20.21.1", cameras=4, analysers=2),
    _site("f22", "F22: Forest 1", "10.20.22.1", cameras=4, analysers=2),
    _site("f23", "F23: Forest 2", "10.20.23.1"),
    _site("f24", "F24: Khaznah", "10.20.24.1"),
    _site("f27", "F27: Al Arad", "10.20.27.1"),
    _site("f29", "F29: Zakir", "10.20.29.1", status="development"),
    _site("f30", "F30: BK4", "10.20.30.1", status="development"),
]


def load_sites(path: Optional[str] = None) -> List[SiteConfig]:
    """Sites from a JSON file (list of site objects), or the built-in catalog."""
    path = path if path is not None else config.SITES_FILE
    if not path:
        return list(DEFAULT_SITES)
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    sites = [SiteConfig.model_validate(item) for item in raw]
    logger.info(f"Loaded {len(sites)} sites from {path}")
    return sites


@lru_cache(maxsize=1)
def get_sites() -> List[SiteConfig]:
    return load_sites()


def sites_by_id(sites: Optional[List[SiteConfig]] = None) -> Dict[str, SiteConfig]:
    return {site.id: site for site in (sites if sites is not None else get_sites())}


def find_site(site_id: str, sites: Optional[List[SiteConfig]] = None) -> Optional[SiteConfig]:
    return sites_by_id(sites).get(site_id)
