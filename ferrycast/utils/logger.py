"""
Loguru logging for the ferrycast training job.

Every line carries the id of the pipeline run that produced it, bound with
logger.contextualize(run_id=...) by the coordinator. Lines logged outside a
run show "-".

Usage:
    from ferrycast.utils import logger

    logger.info("Building training windows")
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> "
    "<level>{level: <8}</level> "
    "<magenta>[{extra[run_id]}]</magenta> "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | run={extra[run_id]} | "
    "{name}:{function}:{line} | {message}"
)


def setup_logger(
    log_level: str = "INFO",
    log_dir: str | Path = "logs",
    log_file: str = "training.log",
    rotation: str = "10 MB",
    retention: str = "7 days",
    enable_stdout: bool = True,
    enable_file: bool = True,
) -> None:
    """
    Replace all sinks with a console sink and a rotating file sink.

    Args:
        log_level: Minimum level for both sinks
        log_dir: Directory for the log file (created if missing)
        log_file: Log file name
        rotation: Loguru rotation rule, e.g. "10 MB" or "00:00"
        retention: Loguru retention rule, e.g. "7 days"
        enable_stdout: Add the colorized stdout sink
        enable_file: Add the zip-compressed file sink
    """
    logger.remove()
    logger.configure(extra={"run_id": "-"})

    if enable_stdout:
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=log_level, colorize=True, diagnose=False)

    if enable_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / log_file,
            format=FILE_FORMAT,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            diagnose=False,
            enqueue=True,  # training units log from worker threads
        )

    logger.debug(f"Logger configured: level={log_level}, stdout={enable_stdout}, file={enable_file}")


# Console only until main.py configures the file sink from settings
setup_logger(enable_file=False)


__all__ = ["logger", "setup_logger"]
