import logging

from citizen_portal.api import create_app
from citizen_portal.config.log_setup import configure_logging
from citizen_portal.config.settings import settings

configure_logging()
logger = logging.getLogger(__name__)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Serving stub portal API on %s:%s", settings.STUB_API_HOST, settings.STUB_API_PORT)
    uvicorn.run(app, host=settings.STUB_API_HOST, port=settings.STUB_API_PORT)
