"""Tests for secret lookup."""

import logging

import pytest

from library_jp_reminder import EnvSecretStore, ReminderSettings, SecretUnavailableError, load_secrets
from library_jp_reminder.secret_store import env_var_for

ENV = {
    "LIBRARY_ID": "12345678",
    "LIBRARY_PASSWORD": "secret-pw",
    "DISCORD_WEBHOOK_URL": "https://chat.example.com/hook",
}


class TestEnvSecretStore:
    """Tests for EnvSecretStore and load_secrets."""

    def test_env_var_names(self):
        assert env_var_for("library-id") == "LIBRARY_ID"
        assert env_var_for("discord-webhook-url") == "DISCORD_WEBHOOK_URL"

    def test_reads_value(self):
        store = EnvSecretStore({"LIBRARY_ID": " 12345678\n"})
        assert store.get("library-id") == "12345678"

    @pytest.mark.parametrize("env", [{}, {"LIBRARY_ID": "   "}])
    def test_missing_or_empty(self, env):
        with pytest.raises(SecretUnavailableError) as exc_info:
            EnvSecretStore(env).get("library-id")
        assert exc_info.value.name == "library-id"
        assert "library-id" in str(exc_info.value)

    def test_load_secrets(self):
        secrets = load_secrets(EnvSecretStore(ENV), ReminderSettings())
        assert secrets.library_id == "12345678"
        assert secrets.library_password == "secret-pw"
        assert secrets.webhook_url == "https://chat.example.com/hook"
        assert "secret-pw" not in repr(secrets)

    def test_load_secrets_reports_missing_secret(self):
        env = {key: value for key, value in ENV.items() if key != "DISCORD_WEBHOOK_URL"}
        with pytest.raises(SecretUnavailableError, match="discord-webhook-url"):
            load_secrets(EnvSecretStore(env), ReminderSettings())

    def test_values_are_not_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="library_jp_reminder"):
            load_secrets(EnvSecretStore(ENV), ReminderSettings())
        assert "secret-pw" not in caplog.text
        assert "12345678" not in caplog.text
