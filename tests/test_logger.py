"""Tests for loguru logging setup."""

import json
import logging

import pytest
from loguru import logger

from src.core.logger import InterceptHandler, correlation_id_ctx, setup_structured_logging


@pytest.fixture
def restore_logging():
    yield
    logger.remove()
    logging.basicConfig(handlers=[], force=True)


class TestSetupStructuredLogging:
    """Tests for setup_structured_logging."""

    def test_json_file_sink(self, tmp_path, restore_logging):
        setup_structured_logging("INFO", json_format=True, logs_dir=tmp_path)
        token = correlation_id_ctx.set("req-12345678")
        try:
            logger.info("session issued")
        finally:
            correlation_id_ctx.reset(token)
        logger.complete()

        lines = (tmp_path / "otp_gateway.jsonl").read_text().strip().splitlines()
        record = json.loads(lines[-1])["record"]
        assert record["message"] == "session issued"
        assert record["extra"]["correlation_id"] == "req-12345678"

    def test_text_file_sink(self, tmp_path, restore_logging):
        setup_structured_logging("DEBUG", json_format=False, logs_dir=tmp_path)
        logger.debug("sweep finished")

        content = (tmp_path / "otp_gateway.log").read_text()
        assert "sweep finished" in content
        assert "| - |" in content

    def test_standard_logging_is_intercepted(self, tmp_path, restore_logging):
        setup_structured_logging("INFO", json_format=False, logs_dir=tmp_path)
        assert any(isinstance(h, InterceptHandler) for h in logging.root.handlers)

        logging.getLogger("uvicorn.error").warning("port in use")

        assert "port in use" in (tmp_path / "otp_gateway.log").read_text()
