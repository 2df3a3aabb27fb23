"""Run the shortener: python -m shorty

Settings come from the environment or a .env file, see shorty.core.config.
"""

import uvicorn

from shorty.core.config import get_settings
from shorty.core.logging_config import configure_logging


def main():
    settings = get_settings()
    logger = configure_logging(settings.LOG_LEVEL)
    logger.info("Starting %s on %s:%d", settings.PROJECT_NAME, settings.HOST, settings.PORT)
    uvicorn.run(
        "shorty.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
