"""CLI entry-point for running the compliance alerts web server."""
from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
import uvicorn

from services.alerts import DEFAULT_CONFIG_PATH, load_config

from .app import create_app

LOGGER = logging.getLogger("revlogix.web")
ROOT = Path(__file__).resolve().parents[2]


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    host_default = os.getenv("REVLOGIX_WEB_HOST", "0.0.0.0")
    port_default = int(os.getenv("PORT") or os.getenv("REVLOGIX_WEB_PORT", "8000"))
    parser = argparse.ArgumentParser(description="Run the compliance alerts web server")
    parser.add_argument(
        "--host",
        default=host_default,
        help="Host interface to bind (default: %(default)s)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=port_default,
        help="Port to listen on (default: %(default)s)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to alerts config file (default: %(default)s)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """Run the ASGI server hosting the web application."""

    load_dotenv(ROOT / ".env")
    args = _parse_args(argv)
    config = load_config(Path(args.config))
    level = getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if not config.backend.token:
        LOGGER.warning("No service token configured; requests must carry an Authorization header")

    app = create_app(config=config, logger=LOGGER)
    LOGGER.info("Starting compliance alerts server on http://%s:%s (backend %s)", args.host, args.port, config.backend.url)

    uvicorn.run(app, host=args.host, port=args.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
