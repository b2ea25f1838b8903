#!/usr/bin/env python3
"""
OTP Relay - email verification code relay for automation clients.

Main entry point for the application.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from src.core.config.settings import RelaySettings, get_settings
from src.core.logger import setup_structured_logging


async def run_server(settings: RelaySettings, host: str, port: int) -> None:
    """
    Serve the relay API until interrupted.

    Args:
        settings: Application settings
        host: Bind address
        port: Listening port
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Starting OTP relay on {host}:{port} (env: {settings.env})")

    import uvicorn

    from web.app import create_app

    app = create_app(settings)
    config_uvicorn = uvicorn.Config(
        app, host=host, port=port, log_level=settings.log_level.lower(), log_config=None
    )
    server = uvicorn.Server(config_uvicorn)
    await server.serve()
    logger.info("OTP relay shutdown complete")


def main(argv: Optional[list] = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="OTP Relay - email verification code relay")
    parser.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: PORT setting)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL setting)",
    )

    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    # Setup structured logging
    setup_structured_logging(
        args.log_level or settings.log_level,
        json_format=settings.log_json,
        log_dir=settings.log_dir,
        diagnose=settings.is_development(),
    )
    logger = logging.getLogger(__name__)

    try:
        asyncio.run(run_server(settings, args.host or settings.host, args.port or settings.port))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
