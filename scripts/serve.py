from __future__ import annotations

import argparse
import logging

import uvicorn

from advisor.api.advisor_api import create_app
from advisor.core.logging_setup import configure_logging
from advisor.core.settings import load_settings

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the investment advisor dashboard and JSON API")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--catalog", default=None, help="Path to the catalog JSON file")
    parser.add_argument("--portfolio", default=None, help="Path to the portfolio JSON file")
    parser.add_argument("--static-dir", default=None)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    settings = load_settings(
        host=args.host,
        port=args.port,
        catalog_path=args.catalog,
        portfolio_path=args.portfolio,
        static_dir=args.static_dir,
        log_level=args.log_level,
    )
    configure_logging(settings)

    app = create_app(settings=settings)
    logger.info("Server listening on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
