#logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "SymbolBuilder"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# SP100_LOG_FILE="" disables the file handler (e.g. read-only CI checkouts)
LOG_FILE = os.getenv("SP100_LOG_FILE", "symbol_builder.log")
CONSOLE_LEVEL = os.getenv("SP100_LOG_LEVEL", "INFO").upper()


def setup_logger(name: str = LOGGER_NAME, log_file: str = LOG_FILE,
                 console_level: str = CONSOLE_LEVEL) -> logging.Logger:
    """
    Console at `console_level`, everything at DEBUG to a rotating `log_file`.
    Calling it again for the same name replaces the handlers it installed.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for handler in [h for h in logger.handlers if getattr(h, "_symbol_builder", False)]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    level = getattr(logging, str(console_level).upper(), None)
    console.setLevel(level if isinstance(level, int) else logging.INFO)
    console.setFormatter(formatter)
    console._symbol_builder = True
    logger.addHandler(console)

    if log_file:
        fh = RotatingFileHandler(
            log_file,
            mode="a",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
            delay=True,                 # no file until the first record
        )
        fh.setFormatter(formatter)
        fh.setLevel(logging.DEBUG)
        fh._symbol_builder = True
        logger.addHandler(fh)

    return logger


log = setup_logger()
