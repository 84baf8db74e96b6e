import logging

from backend.config import Settings
from backend.core.security import log_security_warnings


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "rotate-me")
    monkeypatch.setenv("MESSAGING_BACKEND", "twilio")
    monkeypatch.setenv("TWILIO_ACCOUNT_SID", "AC1")
    monkeypatch.setenv("TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setenv("WEBHOOK_TOLERANCE_SECONDS", "120")

    settings = Settings(_env_file=None)

    assert settings.admin_token == "rotate-me"
    assert settings.messaging_backend == "twilio"
    assert settings.webhook_tolerance_seconds == 120
    assert settings.twilio_is_configured is True


def test_twilio_requires_both_credentials():
    settings = Settings(_env_file=None, twilio_account_sid="AC1", twilio_auth_token=None)

    assert settings.twilio_is_configured is False


def test_security_warnings_for_insecure_defaults(caplog):
    with caplog.at_level(logging.WARNING, logger="backend.core.security"):
        log_security_warnings("dev-secret-please-change", None, "twilio", False)

    messages = " ".join(record.getMessage() for record in caplog.records)
    assert "JWT key" in messages
    assert "CLERK_WEBHOOK_SECRET" in messages
    assert "Twilio credentials are missing" in messages


def test_json_logging_includes_request_id(capsys):
    from pythonjsonlogger.json import JsonFormatter

    from backend.core.logging import configure_logging

    configure_logging("INFO", "json")
    try:
        assert any(isinstance(handler.formatter, JsonFormatter) for handler in logging.getLogger().handlers)
        logging.getLogger("backend.tests").info("hello")
        output = capsys.readouterr().err
        assert '"request_id": "-"' in output
        assert '"message": "hello"' in output
    finally:
        configure_logging("INFO", "text")
