import logging
import sys

from citizen_portal.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug: bool | None = None) -> None:
    """Install the structured stdout logging used by shells and the stub API."""
    enabled = settings.DEBUG if debug is None else debug
    logging.basicConfig(
        level=logging.DEBUG if enabled else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
