"""SiteWatch FastAPI application - main entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.sitewatch import config
from src.sitewatch.api.routes import history, sites
from src.sitewatch.api.schemas import HealthResponse

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info(f"🚀 SiteWatch API starting — env={config.ENVIRONMENT}, db={config.DB_HOST}:{config.DB_PORT}")
    yield
    from src.sitewatch.db import get_engine
    if get_engine.cache_info().currsize:
        get_engine().dispose()
    logger.info("SiteWatch API shutting down")


app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description="SiteWatch — live and historical telemetry for remote mining sites",
    lifespan=lifespan,
)

# CORS: allow all origins for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(history.router, prefix="/api")
app.include_router(sites.router, prefix="/api")


@app.get("/", tags=["root"])
def root():
    return {"message": "SiteWatch API", "version": config.API_VERSION, "docs": "/docs"}


@app.get("/health", tags=["health"], response_model=HealthResponse)
@app.get("/api/health", tags=["health"], response_model=HealthResponse)
def health():
    """Basic health check, verifies database connectivity."""
    from src.sitewatch.db import get_engine, ping

    try:
        db_status = "ok" if ping(get_engine()) else "error"
    except Exception as e:
        db_status = f"error: {e}"

    status = "ok" if db_status == "ok" else "degraded"
    return JSONResponse(
        status_code=200,
        content={
            "status": status,
            "database": db_status,
            "bus": {
                "url": config.MQTT_URL,
                "simulate_when_offline": config.BUS_SIMULATE_OFFLINE,
                "connect_timeout": config.BUS_CONNECT_TIMEOUT,
            },
            "version": config.API_VERSION,
        },
    )
