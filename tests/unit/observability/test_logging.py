"""Tests for logging setup."""

import json
import logging

import pytest

from chatflow.observability import ContextLogger, setup_logging
from chatflow.observability.logging import ContextAdapter, build_logging_config


@pytest.fixture(autouse=True)
def restore_chatflow_logger():
    """setup_logging() reconfigures global state; put it back after each test."""
    logger = logging.getLogger("chatflow")
    level, propagate = logger.level, logger.propagate
    root_handlers = list(logging.getLogger().handlers)
    root_level = logging.getLogger().level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler not in root_handlers:
            root.removeHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate
    root.setLevel(root_level)


class TestSetupLogging:
    def test_sets_level_on_package_logger(self):
        setup_logging("debug")

        logger = logging.getLogger("chatflow")
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1

    def test_child_loggers_inherit(self):
        setup_logging("WARNING")

        child = logging.getLogger("chatflow.runtime.engine")
        assert not child.isEnabledFor(logging.INFO)
        assert child.isEnabledFor(logging.ERROR)

    def test_json_file_receives_structured_lines(self, tmp_path):
        log_file = tmp_path / "chatflow.jsonl"
        setup_logging("INFO", json_file=str(log_file))

        logging.getLogger("chatflow.runtime.engine").info(
            "Turn finished", extra={"execution_id": "exec-1", "status": "completed"}
        )

        record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert record["message"] == "Turn finished"
        assert record["levelname"] == "INFO"
        assert record["name"] == "chatflow.runtime.engine"
        assert record["execution_id"] == "exec-1"
        assert record["status"] == "completed"


class TestContextLogger:
    def test_adapter_carries_context(self):
        adapter = ContextLogger("chatflow.test").with_context(execution_id="exec-9")

        assert isinstance(adapter, ContextAdapter)
        assert adapter.logger.name == "chatflow.test"
        assert adapter.extra == {"execution_id": "exec-9"}

    def test_per_call_extra_is_merged_with_context(self):
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        logger = logging.getLogger("chatflow.test.merge")
        handler = Collect()
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            adapter = ContextLogger("chatflow.test.merge").with_context(execution_id="exec-9")
            adapter.info("step", extra={"node_id": "ask"})
        finally:
            logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)

        assert records[0].execution_id == "exec-9"
        assert records[0].node_id == "ask"


class TestBuildLoggingConfig:
    def test_console_only_by_default(self):
        config = build_logging_config("warning")

        assert list(config["handlers"]) == ["console"]
        assert config["loggers"]["chatflow"]["level"] == "WARNING"

    def test_json_file_handler(self, tmp_path):
        config = build_logging_config(json_file=str(tmp_path / "x.jsonl"))

        assert config["loggers"]["chatflow"]["handlers"] == ["console", "json_file"]
        assert config["handlers"]["json_file"]["formatter"] == "json"
