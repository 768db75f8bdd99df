import logging
from logging.handlers import RotatingFileHandler

from .config import settings


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, (level or settings.log_level).upper(), logging.INFO))

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (receiver runs unattended for months)
    path = log_file if log_file is not None else settings.log_file
    if path:
        fh = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # Silence noisy httpx request logging
    logging.getLogger("httpx").setLevel(logging.WARNING)
