import logging
import sys

LOGGER_NAME = "bit2"


def setup_logging(level: str = "INFO") -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    if logger.level <= logging.DEBUG:
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        # Plain CLI output for normal runs.
        formatter = logging.Formatter(fmt="%(message)s")
    handler.setFormatter(formatter)

    # Replace our handler on repeated calls (main() may run more than once per process)
    for h in list(logger.handlers):
        if getattr(h, "_bit2", False):
            logger.removeHandler(h)
    handler._bit2 = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
