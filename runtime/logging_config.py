import logging
from typing import Optional

LOGGER_NAME = "mesh_functionals"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(
    log_file: Optional[str] = None,
    *,
    quiet: bool = False,
    debug: bool = False,
    file_mode: str = "w",
) -> logging.Logger:
    """Configure and return the shared `mesh_functionals` logger.

    The engine reports per-grade element and image counts at DEBUG and
    aborted evaluations at ERROR. `debug=True` lets the DEBUG records
    through to every handler. No file is written unless `log_file` is given;
    `quiet=True` drops the console handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    # Records still reach the root logger so pytest's caplog can see them.
    logger.propagate = True

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode=file_mode)
        except OSError as exc:
            logger.warning("Could not open log file '%s': %s", log_file, exc)
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
