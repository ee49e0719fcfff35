from __future__ import annotations

import logging

from bit2.errors import Bit2Error, ErrorCode, handle_error


def test_bit2_error_code_and_recovery_steps(caplog):
    caplog.set_level(logging.INFO, logger="bit2")
    err = Bit2Error("Not authenticated with Turso", ErrorCode.AUTH_REQUIRED, ["Run: turso auth signup"])

    assert handle_error(err) == 51
    assert "❌ Not authenticated with Turso" in caplog.text
    assert "Recovery steps" in caplog.text
    assert "• Run: turso auth signup" in caplog.text


def test_unexpected_error(caplog):
    caplog.set_level(logging.INFO, logger="bit2")
    assert handle_error(ValueError("boom")) == ErrorCode.UNKNOWN
    assert "boom" in caplog.text
    assert "DEBUG=1" in caplog.text


def test_unexpected_error_with_debug(monkeypatch, caplog):
    monkeypatch.setenv("DEBUG", "1")
    caplog.set_level(logging.INFO, logger="bit2")
    try:
        raise KeyError("missing")
    except KeyError as e:
        assert handle_error(e) == 1
    assert "Stack trace" in caplog.text
    assert "Traceback" in caplog.text


def test_error_codes_are_stable():
    assert ErrorCode.DIRECTORY_EXISTS == 12
    assert ErrorCode.DATABASE_MIGRATION_FAILED == 32
    assert ErrorCode.DEPLOYMENT_FAILED == 61
    assert ErrorCode.API_ERROR == 72
