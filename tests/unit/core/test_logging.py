"""
Tests for the logging middleware.
Covers PII masking, nested data and the request/response records.
"""

import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    get_logger,
    is_sensitive_field,
    mask_sensitive_data,
    setup_logging,
)


class TestSensitiveFieldDetection:
    """Sensitive field name detection."""

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("Password", True),
        ("passwd", True),
        ("access_token", True),
        ("apiKey", True),
        ("client_secret", True),
        ("Authorization", True),
        ("cookie", True),
        ("date_of_birth", True),
        ("name", False),
        ("email", False),
        ("stage", False),
        ("appliedJobIds", False),
        ("createdAt", False),
    ])
    def test_sensitive_field_patterns(self, field_name, expected):
        assert is_sensitive_field(field_name) == expected


class TestMasking:
    """Recursive masking of values."""

    def test_sensitive_keys_are_redacted(self):
        data = {"name": "Admin User", "password": "admin123"}

        masked = mask_sensitive_data(data)

        assert masked == {"name": "Admin User", "password": "[REDACTED]"}

    def test_nested_structures(self):
        data = {
            "candidates": [
                {"personalDetails": {"token": "abc"}, "skills": ["Go"]},
            ]
        }

        masked = mask_sensitive_data(data)

        assert masked["candidates"][0]["personalDetails"]["token"] == "[REDACTED]"
        assert masked["candidates"][0]["skills"] == ["Go"]

    @pytest.mark.parametrize("text,replacement", [
        ("contact maya@example.com today", "[EMAIL]"),
        ("call 555-123-4567", "[PHONE]"),
        ("call +44 20 7946 0958", "[PHONE]"),
    ])
    def test_pii_in_strings(self, text, replacement):
        assert replacement in mask_sensitive_data(text)

    def test_non_string_values_pass_through(self):
        assert mask_sensitive_data({"order": 3, "active": True}) == {"order": 3, "active": True}

    def test_max_depth_protection(self):
        data = current = {}
        for _ in range(15):
            current["next"] = {}
            current = current["next"]

        masked = mask_sensitive_data(data, max_depth=5)

        assert "[MAX_DEPTH_EXCEEDED]" in json.dumps(masked)


class TestStructuredLoggingMiddleware:
    """Request/response records."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(StructuredLoggingMiddleware, log_request_body=True)

        @app.post("/candidates")
        async def create(payload: dict):
            return payload

        @app.get("/jobs")
        async def jobs():
            return []

        return TestClient(app)

    def test_request_id_header_is_set(self, client):
        response = client.get("/jobs")
        assert response.headers["x-request-id"]

    def test_incoming_request_id_is_echoed(self, client):
        response = client.get("/jobs", headers={"x-request-id": "req-1"})
        assert response.headers["x-request-id"] == "req-1"

    def test_records_are_emitted_with_masked_body(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            client.post(
                "/candidates",
                json={"name": "Ann", "email": "ann@example.com", "password": "x"},
            )

        records = [
            json.loads(r.getMessage())
            for r in caplog.records
            if r.name == "core.middleware.logging"
        ]
        started = next(r for r in records if r["event"] == "request_started")
        completed = next(r for r in records if r["event"] == "request_completed")

        assert started["body"]["password"] == "[REDACTED]"
        assert started["body"]["email"] == "[EMAIL]"
        assert completed["status_code"] == 200
        assert completed["request_id"] == started["request_id"]
        assert "ann@example.com" not in caplog.text


class TestSetupLogging:
    """Logging configuration."""

    def test_json_formatter(self, capsys):
        setup_logging(log_level="INFO", json_logs=True)

        get_logger("talentflow.test").info("hello")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "talentflow.test"

    def test_level_is_applied(self):
        setup_logging(log_level="WARNING", json_logs=False)
        assert logging.getLogger().level == logging.WARNING
