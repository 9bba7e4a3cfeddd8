import sys
from loguru import logger
from .config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> | {extra}"
)


def setup_logging(level: str | None = None):
    """
    Configure the process-wide loguru logger.

    Replaces loguru's default handler with a single stderr sink. With
    LOG_SERIALIZE=true every record is written as one JSON object, which
    keeps the keyword context passed to logger calls machine-readable.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        serialize=settings.log_serialize,
        backtrace=False,
        diagnose=settings.app_env == "dev",
    )
    return logger
