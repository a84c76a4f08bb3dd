import logging

from config.settings import LOG_LEVEL

# request logging from these is noise next to the [scan] lines
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

def setup_logging(level: int | str = LOG_LEVEL):

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
