"""Event models exchanged between the transport, the reconciler and consumers."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from .session import SessionStatus


class TranscriptEvent(BaseModel):
    """One recognizer update as received from the STT service.

    Wire names are camelCase (``finalText``, ``interimText``,
    ``hasSpeechEnded``). Missing or null fields fall back to an empty string
    or ``False``; any other type mismatch fails validation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    final_text: StrictStr = Field(default="", alias="finalText")
    interim_text: StrictStr = Field(default="", alias="interimText")
    has_speech_ended: StrictBool = Field(default=False, alias="hasSpeechEnded")

    @field_validator("final_text", "interim_text", mode="before")
    @classmethod
    def _null_text_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("has_speech_ended", mode="before")
    @classmethod
    def _null_flag_is_false(cls, value: Any) -> Any:
        return False if value is None else value


@dataclass
class StatusEvent:
    """Session status change published to consumers."""
    session_id: Optional[str]
    status: SessionStatus
    error: Optional[Exception] = None
    timestamp: datetime = field(default_factory=datetime.now)
