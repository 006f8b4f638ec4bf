"""
MAMA journal backend entry point
Runs the FastAPI server with uvicorn
"""

import sys

import uvicorn
from loguru import logger

from server.api.journal_server import create_app
from server.settings import global_settings


def main() -> None:
    """Main function"""
    logger.remove()
    logger.add(sys.stderr, level=global_settings.log_level.upper())

    logger.info("Starting MAMA journal server...")
    app = create_app(global_settings)

    try:
        uvicorn.run(
            app,
            host=global_settings.host,
            port=global_settings.port,
            log_level=global_settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    finally:
        logger.info("MAMA journal server stopped")


if __name__ == "__main__":
    main()
