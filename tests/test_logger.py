"""
Harness logging setup.
"""

import logging

import pytest

from xcmbridges.logger import LogManager, TerminalSafeFormatter


@pytest.fixture
def manager():
    m = LogManager()
    yield m
    m.reset()


class TestTerminalSafeFormatter:

    def test_strips_escape_sequences(self):
        record = logging.LogRecord("xcmbridges", logging.INFO, "", 0, "remark \x1b[31mred\x1b[0m\r\x07 done\tok", (), None)
        assert TerminalSafeFormatter("%(message)s").format(record) == "remark red done\tok"


class TestLogManager:

    def test_configure_once(self, manager):
        manager.configure(log_level="DEBUG", file_output=False)
        installed = list(logging.getLogger().handlers)
        manager.configure(log_level="ERROR", file_output=False)
        assert logging.getLogger().handlers == installed
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("websocket").level == logging.WARNING

    def test_apply_switches_level(self, manager):
        manager.apply("INFO", False)
        manager.apply("WARNING", False)
        ours = manager._handlers
        assert len(ours) == 1
        assert ours[0].level == logging.WARNING

    def test_file_output(self, manager, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        manager.configure(log_level="INFO", log_file=log_file, console_output=False, file_output=True)
        logging.getLogger("xcmbridges.test").info("Waiting on KusamaBridgeHub")
        manager.reset()
        assert "Waiting on KusamaBridgeHub" in log_file.read_text()

    def test_reset_removes_handlers(self, manager):
        manager.configure(file_output=False)
        assert manager.is_configured
        manager.reset()
        assert not manager.is_configured
