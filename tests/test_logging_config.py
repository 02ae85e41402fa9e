"""
Tests for log sanitizing and setup.
"""
import logging
from logging.handlers import RotatingFileHandler

from app.core.logging_config import SecretRedactingFilter, redact_secrets, sanitize_log_data, setup_logging


def test_sanitize_log_data_redacts_secrets():
    data = {
        "database_url": "postgresql://user:pw@db/talenthub",
        "stripe_secret_key": "sk_live_123",
        "Stripe-Signature": "t=1,v1=abc",
        "user_id": 42,
    }

    sanitized = sanitize_log_data(data)

    assert sanitized["database_url"] == "***REDACTED***"
    assert sanitized["stripe_secret_key"] == "***REDACTED***"
    assert sanitized["Stripe-Signature"] == "***REDACTED***"
    assert sanitized["user_id"] == 42
    assert data["stripe_secret_key"] == "sk_live_123"


def test_setup_logging_writes_rotating_file(tmp_path):
    setup_logging("DEBUG", log_dir=str(tmp_path / "logs"))

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
    assert (tmp_path / "logs" / "talenthub.log").exists()


def test_redact_secrets_in_messages():
    text = redact_secrets("key=sk_test_abc123 secret=whsec_XYZ auth=Bearer eyJhbGciOi.abc sig=v1=" + "a" * 64)

    assert "sk_test_abc123" not in text
    assert "whsec_XYZ" not in text
    assert "eyJhbGciOi" not in text
    assert "a" * 64 not in text


def test_filter_masks_formatted_record():
    record = logging.LogRecord("billing", logging.INFO, __file__, 1, "Using key %s", ("sk_live_123abc",), None)

    assert SecretRedactingFilter().filter(record) is True
    assert record.getMessage() == "Using key ***REDACTED***"
