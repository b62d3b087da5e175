"""
Secure Logging Tests.

============================================================
PURPOSE
============================================================
Tests for credential masking and structured log entries.

============================================================
"""

import json
import logging

from sailthru_sdk.logging_utils import (
    ClientLogger,
    hash_text,
    mask_headers,
    mask_params,
    mask_url,
    mask_value,
)


class TestMasking:
    """Tests for masking functions."""

    def test_mask_value(self):
        """Test only a short prefix survives."""
        assert mask_value("abcdefgh") == "abcd...***"
        assert mask_value("abc") == "***"
        assert mask_value("") == "***"

    def test_mask_headers(self):
        """Test sensitive headers are masked."""
        masked = mask_headers({
            "Authorization": "Bearer abcdefgh",
            "Accept": "application/json",
        })

        assert masked["Authorization"] == "Bear...***"
        assert masked["Accept"] == "application/json"

    def test_mask_params(self):
        """Test credentials are masked and the payload hashed."""
        payload = '{"id":"neil@example.com"}'
        masked = mask_params({
            "api_key": "123keyvalue",
            "sig": "fa5c79189b708199f3cf69f1cf8f7928",
            "format": "json",
            "json": payload,
        })

        assert masked["api_key"] == "123k...***"
        assert masked["sig"] == "fa5c...***"
        assert masked["format"] == "json"
        assert masked["json"] == f"<json sha256:{hash_text(payload)}>"

    def test_mask_url(self):
        """Test query credentials and payload are hidden."""
        url = (
            "https://api.sailthru.com/user?api_key=123key&sig=abc"
            "&format=json&json=%7B%22id%22%7D"
        )

        assert mask_url(url) == (
            "https://api.sailthru.com/user?api_key=***&sig=***"
            "&format=json&json=<omitted>"
        )

    def test_mask_url_without_query(self):
        """Test plain URLs are unchanged."""
        assert mask_url("https://api.sailthru.com/user") == "https://api.sailthru.com/user"

    def test_hash_text(self):
        """Test hashes are short and stable."""
        assert hash_text("abc") == hash_text("abc")
        assert len(hash_text("abc")) == 16
        assert hash_text("") is None


class TestClientLogger:
    """Tests for ClientLogger."""

    def test_request_ids_increment(self):
        """Test each request gets a new correlation id."""
        log = ClientLogger("test")

        assert log.log_request("GET /user", "GET", "https://api.sailthru.com/user") == "test-1"
        assert log.log_request("GET /user", "GET", "https://api.sailthru.com/user") == "test-2"

    def test_request_entry(self, caplog):
        """Test request entries are JSON with masked fields."""
        caplog.set_level(logging.DEBUG, logger="sailthru_sdk")
        log = ClientLogger("test")

        log.log_request(
            "POST /user",
            "POST",
            "https://api.sailthru.com/user",
            headers={"Accept": "application/json"},
            json_payload='{"id":"neil@example.com"}',
        )

        record = caplog.records[-1]
        entry = json.loads(record.getMessage()[len("REQUEST: "):])
        assert record.levelno == logging.DEBUG
        assert entry["request_id"] == "test-1"
        assert entry["payload_hash"] == hash_text('{"id":"neil@example.com"}')
        assert "neil" not in record.getMessage()

    def test_failed_response_is_warning(self, caplog):
        """Test failures log at warning level."""
        caplog.set_level(logging.DEBUG, logger="sailthru_sdk")
        log = ClientLogger("test")

        log.log_response(
            "GET /user",
            "test-1",
            status_code=0,
            latency_ms=1.23456,
            success=False,
            error_category="TRANSPORT",
            error_message="connection refused",
        )

        record = caplog.records[-1]
        entry = json.loads(record.getMessage()[len("RESPONSE_ERROR: "):])
        assert record.levelno == logging.WARNING
        assert entry["latency_ms"] == 1.235
        assert entry["error_category"] == "TRANSPORT"

    def test_successful_response_is_debug(self, caplog):
        """Test successes log at debug level."""
        caplog.set_level(logging.DEBUG, logger="sailthru_sdk")
        log = ClientLogger("test")

        log.log_response("GET /user", "test-1", 200, 5.0, True)

        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert "error_category" not in record.getMessage()
