import logging

LOGGER_NAME = "ipam"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``ipam`` logger once; module loggers propagate to it."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
