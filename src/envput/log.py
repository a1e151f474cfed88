# This is mainly factored out into a separate module so I can ignore it in
# coverage analysis. The Python logging module won't allow reasonable
# teardown, so tests stay away from it.
import logging


def setup_logging(loggers, level):
    ch = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(levelname)s: %(message)s")
    ch.setFormatter(formatter)
    for logger in loggers:
        logger = logging.getLogger(logger)
        logger.setLevel(level)
        logger.addHandler(ch)
    return ch
