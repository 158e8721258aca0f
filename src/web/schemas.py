from pydantic import BaseModel


class FallReport(BaseModel):
    detected_at: float | None = None  # epoch seconds, defaults to receipt time
    source_id: str | None = None


class CancelRequest(BaseModel):
    reason: str = "cancelled by user"


class SettingsUpdate(BaseModel):
    preferred_language: str | None = None
    emergency_contact: str | None = None
    voice_confirmation_enabled: bool | None = None
    use_tts: bool | None = None
