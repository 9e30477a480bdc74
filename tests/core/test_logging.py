"""Tests for logging processors."""

from quickbill.config.logging import add_app_context, redact_secrets


class TestProcessors:
    """Tests for the custom structlog processors."""

    def test_redacts_credentials(self):
        event = {"event": "kv_request", "token": "abc123", "auth": "secret", "url": "https://kv"}

        result = redact_secrets(None, "info", event)

        assert result["token"] == "***"
        assert result["auth"] == "***"
        assert result["url"] == "https://kv"

    def test_empty_credential_left_alone(self):
        assert redact_secrets(None, "info", {"auth_token": None})["auth_token"] is None

    def test_app_context(self, monkeypatch):
        from quickbill.config import reset_settings

        monkeypatch.setenv("STORAGE_BACKEND", "kv")
        reset_settings()

        result = add_app_context(None, "info", {"event": "x"})

        assert result["app"] == "QuickBill"
        assert result["storage_backend"] == "kv"

    def test_explicit_backend_kept(self):
        result = add_app_context(None, "info", {"event": "x", "storage_backend": "firebase"})

        assert result["storage_backend"] == "firebase"
