"""SQLAlchemy engine for the telemetry database."""

import logging
from functools import lru_cache
from typing import Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine

from src.sitewatch import config

logger = logging.getLogger(__name__)


def database_url() -> Union[str, URL]:
    if config.DATABASE_URL:
        return config.DATABASE_URL
    return URL.create(
        "mysql+pymysql",
        username=config.DB_USER,
        password=config.DB_PASSWORD,
        host=config.DB_HOST,
        port=config.DB_PORT,
        database=config.DB_NAME,
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    connect_args = {}
    if config.DB_SSL and not config.DATABASE_URL:
        # TLS without certificate verification, as the managed host requires
        connect_args["ssl"] = {"check_hostname": False, "verify_mode": False}
    engine = create_engine(
        database_url(),
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_recycle=3600,
    )
    logger.info(f"Database engine created: {engine.url.render_as_string(hide_password=True)}")
    return engine


def ping(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database ping failed: {e}")
        return False
