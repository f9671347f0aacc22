"""
Main entrypoint: serves the FIT Compare API under uvicorn.

Usage:
    python -m fitcompare
    uvicorn fitcompare.api.main:app --host 0.0.0.0 --port 8000  # equivalent
"""
import logging

import uvicorn

from fitcompare.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger = logging.getLogger(__name__)
    if not settings.auth_jwt_key:
        logger.warning("AUTH_JWT_KEY not set; only shared-link routes will work.")

    logger.info("Serving API on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run(
        "fitcompare.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # keep the basicConfig format above
    )


if __name__ == "__main__":
    main()
