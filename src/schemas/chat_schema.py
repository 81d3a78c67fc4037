"""Chat transcript schemas shared by the session, transports and presentation."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntryKind(str, Enum):
    USER = "user"
    BOT = "bot"
    SYSTEM = "system"
    CONTACT = "contact"


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    ERROR = "error"


class ContactRecord(BaseModel):
    """A person extracted from <contact> markup in an agent reply."""

    model_config = ConfigDict(frozen=True)

    full_name: str = ""
    company_name: str = ""
    job_title: str = ""
    linkedin_url: str = ""

    def is_empty(self) -> bool:
        return not (self.full_name or self.company_name or self.job_title or self.linkedin_url)


class UserEntry(BaseModel):
    """Text the local user sent to the agent."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    text: str
    at: datetime = Field(default_factory=_utcnow)


class BotEntry(BaseModel):
    """Text reply from the agent."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bot"] = "bot"
    text: str
    at: datetime = Field(default_factory=_utcnow)


class SystemEntry(BaseModel):
    """Connection lifecycle notice."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["system"] = "system"
    text: str
    at: datetime = Field(default_factory=_utcnow)


class ContactEntry(BaseModel):
    """A contact card extracted from an agent reply."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["contact"] = "contact"
    record: ContactRecord
    at: datetime = Field(default_factory=_utcnow)


ChatEntry = Annotated[
    Union[UserEntry, BotEntry, SystemEntry, ContactEntry],
    Field(discriminator="kind"),
]


class DecodedFrame(BaseModel):
    """Normalized payload of one inbound frame.

    ``role`` is whatever the envelope declared in its ``type`` field, or
    None when the frame carried no envelope or no role.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    role: Optional[str] = None
