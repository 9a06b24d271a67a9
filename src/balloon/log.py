# log.py
import logging
import os

LOGGER_NAME = "balloon"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Configure the dedicated "balloon" logger.

    Every module logs through ``logging.getLogger(__name__)``, so all of them
    end up here. The root logger is left alone so Numba's compiler chatter
    stays out of the simulation log.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(fmt)

    # Re-running setup (e.g. after a reset) must not duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized (level=%s, file=%s)", logging.getLevelName(logger.level), log_file)
    return logger
