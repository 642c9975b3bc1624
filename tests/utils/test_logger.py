"""
Tests for logging helpers.
"""

import pytest
from loguru import logger

from noteport.utils.logger import NO_JOB, get_logger, job_logger, setup_logging


@pytest.fixture
def captured():
    messages = []
    sink_id = logger.add(
        lambda message: messages.append(message.record),
        level="DEBUG",
        format="{message}",
    )
    yield messages
    logger.remove(sink_id)


@pytest.mark.unit
class TestLoggers:
    """Bound module and job context."""

    def test_module_logger_has_no_job(self, captured):
        get_logger("noteport.tests").info("plain")

        assert captured[-1]["extra"] == {"module": "noteport.tests", "job_id": NO_JOB}

    def test_job_logger_binds_job_id(self, captured):
        job_logger("noteport.tests", "job_abc").warning("note failed")

        record = captured[-1]
        assert record["extra"]["job_id"] == "job_abc"
        assert record["message"] == "note failed"

    def test_setup_logging_creates_log_dir(self, tmp_path):
        log_dir = tmp_path / "logs"

        setup_logging(level="DEBUG", log_to_file=True, log_dir=str(log_dir), serialize=False)
        try:
            assert log_dir.is_dir()
        finally:
            setup_logging(level="INFO", log_to_file=False)
