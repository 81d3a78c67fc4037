"""Classification of raw inbound frames into text plus an optional role."""

import json
import logging
from typing import Any

from src.schemas.chat_schema import DecodedFrame

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("message", "content")


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def decode_frame(raw: str) -> DecodedFrame:
    """
    Decode one inbound frame.

    Accepts a JSON object envelope (``{"type": ..., "message"|"content": ...}``),
    a bare JSON string, or plain text. Text is taken from ``message``, then
    ``content``, then the bare string, then the raw frame. ``role`` is the
    envelope's ``type`` when present and truthy.

    Never raises: anything that fails to parse is returned as raw text
    with no role.
    """
    try:
        parsed = json.loads(raw)
    except (ValueError, TypeError, RecursionError):
        return DecodedFrame(text=raw)

    if isinstance(parsed, dict):
        role = parsed.get("type")
        for key in _TEXT_FIELDS:
            value = parsed.get(key)
            if value:
                return DecodedFrame(text=_as_text(value), role=_as_text(role) if role else None)
        return DecodedFrame(text=raw, role=_as_text(role) if role else None)

    if isinstance(parsed, str):
        return DecodedFrame(text=parsed)

    logger.debug("JSON frame of type %s has no text field, using raw frame", type(parsed).__name__)
    return DecodedFrame(text=raw)
