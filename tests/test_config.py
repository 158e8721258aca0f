from pathlib import Path

import pytest

from src.core.config import Config, ConfigError, load_config


class TestConfig:
    @pytest.fixture
    def config_file(self, tmp_path):
        config_content = """
confirmation:
  max_attempts: 3
  listen_timeout: 10.0
  prompt_timeout: 6.0
  retry_pause: 1.5

settings:
  preferred_language: "marathi"
  emergency_contact: "${EMERGENCY_CONTACT}"

escalation:
  local_language: "marathi"
  location_url: "https://maps.example/home"

notification:
  account_sid: "${TWILIO_ACCOUNT_SID}"
  auth_token: "${TWILIO_AUTH_TOKEN}"
  from_number: "+15550001111"
  enabled: true

audit:
  db_path: "data/test.db"
  retention_days: 30
"""
        config_path = tmp_path / "settings.yaml"
        config_path.write_text(config_content)
        return config_path

    def test_load_config(self, config_file):
        config = load_config(str(config_file))
        assert config.confirmation.max_attempts == 3
        assert config.confirmation.retry_pause == 1.5
        assert config.settings.preferred_language == "marathi"
        assert config.escalation.location_url == "https://maps.example/home"
        assert config.audit.retention_days == 30

    def test_missing_sections_use_defaults(self, config_file):
        config = load_config(str(config_file))
        assert config.speech.phrase_time_limit == 6.0
        assert config.web.port == 8000
        assert config.audit.cleanup_enabled is True
        assert config.confirmation.answer_grace == 10.0
        assert config.settings.use_tts is False
        assert config.speech.audio_dir is None

    def test_env_variable_substitution(self, config_file, monkeypatch):
        monkeypatch.setenv("EMERGENCY_CONTACT", "+911234567890")
        monkeypatch.setenv("TWILIO_ACCOUNT_SID", "AC_from_env")
        config = load_config(str(config_file))
        assert config.settings.emergency_contact == "+911234567890"
        assert config.notification.account_sid == "AC_from_env"

    def test_unset_env_variable_is_empty(self, config_file, monkeypatch):
        monkeypatch.delenv("EMERGENCY_CONTACT", raising=False)
        config = load_config(str(config_file))
        assert config.settings.emergency_contact == ""

    def test_default_config_file(self):
        config = load_config(str(Path(__file__).parent.parent / "config" / "settings.yaml"))
        assert isinstance(config, Config)
        assert config.confirmation.max_attempts == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("confirmation:\n  max_tries: 2\n")
        with pytest.raises(ConfigError, match="confirmation"):
            load_config(str(path))

    def test_invalid_max_attempts(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("confirmation:\n  max_attempts: 0\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_negative_answer_grace(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("confirmation:\n  answer_grace: -1\n")
        with pytest.raises(ConfigError, match="answer_grace"):
            load_config(str(path))

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = load_config(str(path))
        assert config == Config()
