import logging
import sys


LOG_FORMATS = {
    "json": (
        '{"time": "%(asctime)s", "level": "%(levelname)s", '
        '"logger": "%(name)s", "message": "%(message)s"}'
    ),
    "text": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    logger = logging.getLogger("prview")
    formatter = logging.Formatter(
        fmt=LOG_FORMATS.get(log_format, LOG_FORMATS["text"]),
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setFormatter(formatter)

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"prview.{name}")
