import logging
import os
import sys

LOG_LEVEL_ENV_VAR = "NEON_SDK_LOG_LEVEL"
HANDLER_NAME = "neon_sdk.stderr"

logger = logging.getLogger("neon_sdk")


def get_log_level(name: str) -> int:
    """Resolve a level name (``"debug"``) or number (``"10"``). Unknown values mean ``WARNING``.
    """
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def configure_logger():
    # Only our own handler is replaced; handlers the application attached are left alone.
    for h in list(logger.handlers):
        if h.get_name() == HANDLER_NAME:
            logger.removeHandler(h)

    level_name = os.environ.get(LOG_LEVEL_ENV_VAR)
    logger.setLevel(get_log_level(level_name or "WARNING"))
    if level_name is None:
        return

    # Setting the env var opts in to output on stderr, with no logging setup in the application.
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s - %(name)s - %(message)s"),
    )
    logger.addHandler(handler)


if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
    logger.addHandler(logging.NullHandler())
configure_logger()
