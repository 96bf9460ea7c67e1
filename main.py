#!/usr/bin/env python3
"""
OTP Gateway - phone number verification service.

Main entry point for the application.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from src.core.config.settings import get_settings
from src.core.exceptions import ConfigurationError
from src.core.logger import setup_structured_logging


def load_env_variables() -> None:
    """Load .env from the project root so ENV is visible before settings are read."""
    env_path = Path(__file__).parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)


async def run_server(host: str, port: int, log_level: str) -> None:
    """
    Run the API server until it is stopped.

    Args:
        host: Bind address
        port: Bind port
        log_level: uvicorn log level
    """
    import uvicorn

    from web.app import create_app

    app = create_app()
    config_uvicorn = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level.lower(),
        log_config=None,
        proxy_headers=False,
    )
    server = uvicorn.Server(config_uvicorn)
    await server.serve()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="OTP Gateway - phone number verification")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=3001, help="Bind port (default: 3001)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL)",
    )

    args = parser.parse_args()
    load_env_variables()

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    log_level = args.log_level or settings.log_level
    setup_structured_logging(log_level, json_format=settings.log_json)
    logger = logging.getLogger(__name__)

    if not 1 <= args.port <= 65535:
        logger.error(f"Invalid port: {args.port}")
        sys.exit(1)

    try:
        logger.info(f"Starting OTP gateway on {args.host}:{args.port} (env={settings.env})")
        asyncio.run(run_server(args.host, args.port, log_level))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
