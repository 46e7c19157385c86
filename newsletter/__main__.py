"""Run the newsletter service with ``python -m newsletter``."""

from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from .domain.exceptions import ConfigurationError
from .infrastructure.factory import InfrastructureFactory
from .infrastructure.logging_config import configure_logging
from .main import create_app

logger = logging.getLogger("newsletter")


def main() -> None:
    """Load configuration, configure logging and serve the API."""
    load_dotenv()

    try:
        config = InfrastructureFactory.create_configuration_port().load_configuration()
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        sys.exit(2)

    configure_logging(config.log_level, config.log_format)
    logger.info(f"Starting HTTP server on {config.api_host}:{config.api_port}")

    uvicorn.run(
        create_app(config),
        host=config.api_host,
        port=config.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
