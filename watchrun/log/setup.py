import logging
import sys
from typing import Optional, Union

from watchrun.config import effective_settings as config
from watchrun.log.handler import LokiHandler

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'


def resolve_level(level: Union[int, str]) -> int:
    """Maps a level name such as 'debug' to its numeric value, defaulting to INFO."""
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def setup_logging(console_level: Union[int, str, None] = None, target: Optional[str] = None) -> None:
    """
    Configures the root logger for watchrun.
    This sets up a console handler and optionally a Loki handler, clearing any
    previously configured handlers to prevent duplication.

    Console output goes to stderr. The supervised process owns stdout.

    :param console_level: The logging level for console output. Defaults to LOG_LEVEL.
    :param target: The supervised executable, used to label shipped logs.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(resolve_level(console_level if console_level is not None else config.LOG_LEVEL))
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # --- Loki Handler (conditional) ---
    if config.LOKI_ENABLED:
        try:
            loki_handler = LokiHandler(
                url=config.LOKI_URL,
                org_id=config.LOKI_ORG_ID or None,
                target=target or "",
                flush_interval=config.LOG_BUFFER_FLUSH_INTERVAL,
            )
            loki_handler.setLevel(logging.INFO) # Avoid spamming Loki with DEBUG logs
            loki_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root_logger.addHandler(loki_handler)
            root_logger.info(f"Grafana Loki logging handler initialized for {config.LOKI_URL}.")
        except Exception as e:
            root_logger.error(f"Failed to initialize Grafana Loki logging handler: {e}")
