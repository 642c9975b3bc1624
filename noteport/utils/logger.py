"""
Logging configuration using Loguru.

Records emitted while an import job runs carry the job id, so a single
upload can be followed across parser, resolver and store log lines.
"""

import sys
from pathlib import Path

from loguru import logger

NO_JOB = "-"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[job_id]}</magenta> | <cyan>{extra[module]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[job_id]} | {extra[module]} - {message}"


def _is_job_record(record) -> bool:
    return record["extra"].get("job_id", NO_JOB) != NO_JOB


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """
    Configure Loguru sinks.

    Console output is always enabled. With ``log_to_file`` two rotating files
    are written under ``log_dir``: the full application log and an import
    trail holding only records bound to a job.
    """
    logger.remove()
    logger.configure(extra={"module": "noteport", "job_id": NO_JOB})

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if not log_to_file:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path / "noteport_{time:YYYY-MM-DD}.log",
        level=level,
        format=FILE_FORMAT,
        rotation=file_rotation,
        retention=file_retention,
        compression=compression,
        serialize=serialize,
        enqueue=True,
    )
    logger.add(
        log_path / "imports_{time:YYYY-MM-DD}.log",
        level="INFO",
        format=FILE_FORMAT,
        filter=_is_job_record,
        rotation=file_rotation,
        retention=file_retention,
        compression=compression,
        serialize=serialize,
        enqueue=True,
    )


def get_logger(name: str):
    """Get a logger instance for a module."""
    return logger.bind(module=name, job_id=NO_JOB)


def job_logger(name: str, job_id: str):
    """Logger for a module acting on behalf of one import job."""
    return logger.bind(module=name, job_id=job_id)
