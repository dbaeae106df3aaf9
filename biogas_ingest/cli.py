"""CLI entry point del bridge (API HTTP + receptor MQTT en un proceso)."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from common.config import ConfigurationError, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def main() -> None:
    p = argparse.ArgumentParser(description="Biogas MQTT receiver + pH calibration API")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=None, help="default: PORT env or 3000")
    p.add_argument("--log-level", default=None, help="default: LOG_LEVEL env or INFO")
    args = p.parse_args()

    try:
        settings = get_settings()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )

    port = args.port or settings.port
    logger.info("Server listening at http://%s:%d", args.host, port)
    logger.info("Debug endpoint available at: /debug")

    uvicorn.run(
        "biogas_ingest.main:app",
        host=args.host,
        port=port,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
