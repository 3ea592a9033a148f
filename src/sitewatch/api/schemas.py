"""Pydantic schemas for SiteWatch API responses."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class CameraStatus(BaseModel):
    id: str
    name: str
    ipAddress: str
    status: str  # "online", "offline", "unknown"


class SiteStatus(BaseModel):
    id: str
    name: str
    status: str  # "online" or "offline"
    cameras: List[CameraStatus] = []


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
    received: Optional[Dict[str, Optional[str]]] = None
    query_params: Optional[Dict[str, Optional[str]]] = None


class BusSettings(BaseModel):
    url: str
    simulate_when_offline: bool
    connect_timeout: float


class HealthResponse(BaseModel):
    status: str
    database: str
    bus: BusSettings
    version: str = "1.0.0"
