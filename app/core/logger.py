"""Logger configuration for PB Assistant.

Call setup_logger() once per process (create_app does). Structured context
passed as keyword arguments (plan_id=..., user_id=...) is rendered after
the message.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> <dim>{extra}</dim>"
)
FILE_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZZ} | {level: <8} | {name}:{function}:{line} - {message} | {extra}"

FILE_ROTATION = "10 MB"
FILE_RETENTION = "7 days"


def setup_logger(level: str = "INFO", log_file: str | None = None) -> None:
    """Replace loguru's default sink with the service sinks.

    Args:
        level: Minimum level for every sink
        log_file: Optional path for a rotating, zipped log file
    """
    logger.remove()
    logger.configure(extra={"service": "pb-assistant"})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=FILE_ROTATION,
            retention=FILE_RETENTION,
            compression="zip",
            enqueue=True,  # Request handlers log from the threadpool
            backtrace=True,
            diagnose=False,  # Tracebacks must not dump prompts or credentials
        )

    logger.info("Logger initialized", level=level, log_file=log_file)
