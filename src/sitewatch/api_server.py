"""Run the SiteWatch API (historical data and site status) under uvicorn.

Usage:
    python -m src.sitewatch.api_server
    python -m src.sitewatch.api_server --port 9000 --reload
"""

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from sqlalchemy.engine import make_url

load_dotenv()

from src.sitewatch import config
from src.sitewatch.db import database_url

logger = logging.getLogger("sitewatch.api_server")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Serve the SiteWatch history and site status API")
    parser.add_argument("--host", default=config.API_HOST, help=f"Bind address (default {config.API_HOST})")
    parser.add_argument("--port", type=int, default=config.API_PORT, help=f"Port (default {config.API_PORT})")
    parser.add_argument("--reload", action="store_true", default=config.DEBUG, help="Restart on code changes")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        config.validate_config()
    except ValueError as e:
        logger.error(f"Refusing to start: {e}")
        return 1

    logger.info(f"Database: {make_url(database_url()).render_as_string(hide_password=True)}")
    logger.info(f"Serving on http://{args.host}:{args.port} ({config.ENVIRONMENT})")
    uvicorn.run(
        "src.sitewatch.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.LOG_LEVEL.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
