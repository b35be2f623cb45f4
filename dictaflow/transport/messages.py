"""Parsing of inbound transcript frames."""

from typing import Union

from pydantic import ValidationError

from ..errors import MalformedMessage
from ..models.events import TranscriptEvent


def parse_transcript_event(raw: Union[str, bytes]) -> TranscriptEvent:
    """Parse one inbound text frame.

    Raises:
        MalformedMessage: The frame is not JSON, not an object, or a field
            has the wrong type
    """
    try:
        return TranscriptEvent.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedMessage(
            f"Invalid transcript message: {e.error_count()} error(s)",
            raw=raw,
            details={"errors": e.errors(include_url=False)},
        ) from e
