import logging
import os
import sys
from logging.handlers import RotatingFileHandler


def setup_logging(level="INFO", log_file=None):
    """Configures the root logger."""
    logger = logging.getLogger()
    logger.setLevel(str(level).upper())

    # Remove default handlers
    for h in logger.handlers[:]:
        logger.removeHandler(h)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        dir_name = os.path.dirname(log_file)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=2)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    logging.info("Logging configured (level=%s, file=%s)", logger.level, log_file or "-")
    return logger
