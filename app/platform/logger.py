import logging
import os
from logging.handlers import RotatingFileHandler

LOGGER_PREFIX = "localhunt"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _log_file_path() -> str:
    log_dir = os.path.join(os.getcwd(), "logs")
    os.makedirs(log_dir, exist_ok=True)
    return os.path.join(log_dir, "localhunt_verification.log")


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the "localhunt." namespace writing to the console and to
    logs/localhunt_verification.log. Records do not propagate to the root
    logger, so they are printed once even when logging.basicConfig ran.
    """
    logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")

    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(_log_file_path(), maxBytes=10_000_000, backupCount=5)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
