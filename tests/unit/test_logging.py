import json
import sys

import pytest
from loguru import logger

from neuronet.utils.logging import LOG_FILE_NAME, setup_logging


@pytest.fixture(autouse=True)
def restore_default_sink():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_setup_logging_creates_log_file(tmp_path) -> None:
    log_dir = tmp_path / "nested" / "logs"
    log_file = setup_logging("debug", log_dir)
    logger.debug("candles generated")
    logger.complete()

    assert log_file == log_dir / LOG_FILE_NAME
    text = log_file.read_text()
    assert "Logging initialized at DEBUG level" in text
    assert "candles generated" in text


def test_level_filters_file_sink(tmp_path) -> None:
    log_file = setup_logging("WARNING", tmp_path)
    logger.info("hidden")
    logger.warning("visible")
    logger.complete()

    text = log_file.read_text()
    assert "hidden" not in text
    assert "visible" in text


def test_json_file_sink_serializes_records(tmp_path) -> None:
    log_file = setup_logging("INFO", tmp_path, json_file=True)
    logger.info("run completed")
    logger.complete()

    records = [json.loads(line) for line in log_file.read_text().splitlines() if line]
    messages = [record["record"]["message"] for record in records]
    assert "run completed" in messages
    assert all(record["record"]["level"]["name"] == "INFO" for record in records)
