"""
Tests for logging setup
"""
import io
import logging

import sys
sys.path.insert(0, '.')

from geofuite.core.logging import resolve_level, setup_logging


class TestLogging:
    """Test suite for logging configuration."""

    def test_resolve_known_level(self):
        assert resolve_level("warning") == logging.WARNING

    def test_resolve_unknown_level_falls_back(self):
        assert resolve_level("LOUD") in (logging.DEBUG, logging.INFO)

    def test_setup_writes_to_stream(self):
        stream = io.StringIO()
        logger = setup_logging("INFO", stream=stream)

        logging.getLogger("geofuite.tests").info("Report created")

        assert logger.name == "geofuite"
        assert "Report created" in stream.getvalue()
        assert "| INFO     |" in stream.getvalue()

    def test_repeated_setup_does_not_duplicate_output(self):
        stream = io.StringIO()
        setup_logging("INFO", stream=io.StringIO())
        setup_logging("INFO", stream=stream)

        logging.getLogger("geofuite.tests").info("once")

        assert stream.getvalue().count("once") == 1

    def test_third_party_loggers_quieted(self):
        setup_logging("DEBUG", stream=io.StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING
