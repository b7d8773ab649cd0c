"""
Tests for log redaction.
"""
from jobscout.core.logging_config import REDACTED, sanitize_log_data


def test_redacts_sensitive_keys():
    data = {"stripe_signature": "t=1,v1=abc", "Authorization": "Bearer xyz", "content_length": 42}

    sanitized = sanitize_log_data(data)

    assert sanitized["stripe_signature"] == REDACTED
    assert sanitized["Authorization"] == REDACTED
    assert sanitized["content_length"] == 42
    assert data["stripe_signature"] == "t=1,v1=abc"


def test_redacts_nested_values():
    sanitized = sanitize_log_data({"headers": [{"api_key": "sk_live_1"}], "user_id": "u1"})
    assert sanitized == {"headers": [{"api_key": REDACTED}], "user_id": "u1"}


def test_empty_sensitive_value_kept():
    assert sanitize_log_data({"stripe_signature": None}) == {"stripe_signature": None}
