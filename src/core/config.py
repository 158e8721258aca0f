import os
import re
from dataclasses import dataclass, field

import yaml


class ConfigError(Exception):
    """Invalid or unreadable configuration."""


@dataclass
class ConfirmationConfig:
    max_attempts: int = 2
    listen_timeout: float = 12.0
    prompt_timeout: float = 8.0
    retry_pause: float = 2.0
    answer_grace: float = 10.0


@dataclass
class SettingsConfig:
    preferred_language: str = "english"
    emergency_contact: str | None = None
    voice_confirmation_enabled: bool = True
    use_tts: bool = False


@dataclass
class EscalationConfig:
    local_language: str = "hinglish"
    location_url: str | None = None
    siren_enabled: bool = True
    siren_repeats: int = 3


@dataclass
class NotificationConfig:
    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""
    enabled: bool = True


@dataclass
class SpeechConfig:
    phrases_file: str | None = None
    audio_dir: str | None = None
    keywords_file: str | None = None
    device_index: int | None = None
    phrase_time_limit: float = 6.0
    speech_rate: int | None = None


@dataclass
class AuditConfig:
    db_path: str = "data/guardian.db"
    retention_days: int = 90
    cleanup_enabled: bool = True
    cleanup_schedule_hours: float = 24


@dataclass
class WebConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class Config:
    confirmation: ConfirmationConfig = field(default_factory=ConfirmationConfig)
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    escalation: EscalationConfig = field(default_factory=EscalationConfig)
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    web: WebConfig = field(default_factory=WebConfig)


def _substitute_env_vars(value: str) -> str:
    # unset variables become empty: a literal "${EMERGENCY_CONTACT}" must never be dialled
    pattern = r"\$\{([^}]+)\}"

    def replace(match):
        env_var = match.group(1)
        return os.environ.get(env_var, "")

    return re.sub(pattern, replace, value)


def _process_config_values(data: dict) -> dict:
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = _process_config_values(value)
        elif isinstance(value, str):
            result[key] = _substitute_env_vars(value)
        else:
            result[key] = value
    return result


def _section(cls, config_data: dict, name: str):
    values = config_data.get(name) or {}
    try:
        return cls(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid '{name}' section: {e}") from e


def load_config(config_path: str = "config/settings.yaml") -> Config:
    try:
        with open(config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    config_data = _process_config_values(raw_config)

    config = Config(
        confirmation=_section(ConfirmationConfig, config_data, "confirmation"),
        settings=_section(SettingsConfig, config_data, "settings"),
        escalation=_section(EscalationConfig, config_data, "escalation"),
        notification=_section(NotificationConfig, config_data, "notification"),
        speech=_section(SpeechConfig, config_data, "speech"),
        audit=_section(AuditConfig, config_data, "audit"),
        web=_section(WebConfig, config_data, "web"),
    )

    if config.confirmation.max_attempts < 1:
        raise ConfigError("confirmation.max_attempts must be at least 1")
    if config.confirmation.listen_timeout <= 0 or config.confirmation.prompt_timeout <= 0:
        raise ConfigError("confirmation timeouts must be positive")
    if config.confirmation.answer_grace < 0:
        raise ConfigError("confirmation.answer_grace must not be negative")

    return config
