"""Unit tests for providerbalancer logging configuration."""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from unittest import mock

import providerbalancer
from providerbalancer.logging_config import LOGGER_NAME, _get_level, _get_logger


class TestSilentByDefault:

    def test_logger_has_null_handler(self):
        logger = logging.getLogger(LOGGER_NAME)
        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)

    def test_selection_produces_no_output(self, capfd, providers):
        providerbalancer.SelectionEngine(providerbalancer.RoundRobin()).select(providers)

        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == ""


class TestEnableConsoleLogging:

    def test_sets_level(self):
        providerbalancer.enable_console_logging(level="DEBUG")
        assert _get_logger().level == logging.DEBUG

    def test_outputs_to_stderr(self, capfd):
        providerbalancer.enable_console_logging(level="INFO")

        logging.getLogger(f"{LOGGER_NAME}.test").info("test message")

        assert "test message" in capfd.readouterr().err

    def test_engine_debug_output(self, capfd, providers):
        providerbalancer.enable_console_logging(level="DEBUG", format="%(message)s")

        providerbalancer.SelectionEngine(providerbalancer.LeastLoaded()).select(providers)

        assert "LeastLoaded selected 10.0.0.2:8080" in capfd.readouterr().err


class TestEnableFileLogging:

    def test_writes_to_rotating_file(self, tmp_path):
        log_file = tmp_path / "nested" / "balancer.log"
        handler = providerbalancer.enable_file_logging(log_file, max_bytes=2048, backup_count=2)

        logging.getLogger(f"{LOGGER_NAME}.test").info("file test message")
        handler.flush()

        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 2048
        assert handler.backupCount == 2
        assert "file test message" in log_file.read_text()


class TestEnableJsonLogging:

    def test_outputs_valid_json(self, capfd):
        providerbalancer.enable_json_logging(level="INFO")

        logging.getLogger(f"{LOGGER_NAME}.test").info("json test")

        data = json.loads(capfd.readouterr().err.strip())
        assert data["message"] == "json test"
        assert data["level"] == "INFO"
        assert data["logger"] == f"{LOGGER_NAME}.test"
        assert "timestamp" in data

    def test_includes_exception(self, capfd):
        providerbalancer.enable_json_logging(level="INFO")

        try:
            raise ValueError("boom")
        except ValueError:
            logging.getLogger(f"{LOGGER_NAME}.test").exception("caught")

        data = json.loads(capfd.readouterr().err.strip())
        assert "ValueError" in data["exception"]

    def test_json_to_file(self, tmp_path):
        log_file = tmp_path / "balancer.json"
        handler = providerbalancer.enable_json_logging(level="INFO", path=log_file)

        logging.getLogger(f"{LOGGER_NAME}.test").info("json file test")
        handler.flush()

        assert json.loads(log_file.read_text().strip())["message"] == "json file test"


class TestConfigureFromEnv:

    def test_level_from_env(self):
        with mock.patch.dict(os.environ, {"PB_LOGGING": "DEBUG"}, clear=True):
            providerbalancer.configure_from_env()
        assert _get_logger().level == logging.DEBUG

    def test_file_from_env(self, tmp_path):
        env = {"PB_LOGGING": "INFO", "PB_LOG_FILE": str(tmp_path / "env.log")}
        with mock.patch.dict(os.environ, env, clear=True):
            providerbalancer.configure_from_env()

        assert any(isinstance(h, RotatingFileHandler) for h in _get_logger().handlers)

    def test_json_from_env(self, capfd):
        with mock.patch.dict(os.environ, {"PB_LOGGING": "INFO", "PB_LOG_JSON": "1"}, clear=True):
            providerbalancer.configure_from_env()

        logging.getLogger(f"{LOGGER_NAME}.test").info("json env test")

        assert json.loads(capfd.readouterr().err.strip())["message"] == "json env test"

    def test_noop_without_env(self):
        before = len(_get_logger().handlers)
        with mock.patch.dict(os.environ, {}, clear=True):
            providerbalancer.configure_from_env()
        assert len(_get_logger().handlers) == before


class TestLevels:

    def test_get_level(self):
        assert _get_level("warning") == logging.WARNING
        assert _get_level(15) == 15
        assert _get_level("nonsense") == logging.INFO

    def test_set_module_level(self):
        providerbalancer.set_module_level("engine", "ERROR")
        try:
            assert logging.getLogger(f"{LOGGER_NAME}.engine").level == logging.ERROR
        finally:
            logging.getLogger(f"{LOGGER_NAME}.engine").setLevel(logging.NOTSET)

    def test_disable_logging(self, capfd):
        providerbalancer.enable_console_logging()
        providerbalancer.disable_logging()

        logging.getLogger(f"{LOGGER_NAME}.test").critical("hidden")

        assert capfd.readouterr().err == ""
        assert _get_logger().level == logging.CRITICAL + 1
