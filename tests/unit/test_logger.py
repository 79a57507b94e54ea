import logging

import pytest

from intake.logging.logger import Log


class TestLog:
    def test_fields_are_appended(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="intake"):
            Log.info("File stored", session="s1", size=10)
        assert caplog.messages[-1] == "File stored | session=s1 size=10"

    def test_plain_message(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="intake"):
            Log.warning("Scan degraded")
        assert caplog.messages[-1] == "Scan degraded"

    def test_configure_is_idempotent(self) -> None:
        logger = logging.getLogger("intake")
        before = len(logger.handlers)
        Log.configure("debug")
        Log.configure("debug")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) <= before + 1
