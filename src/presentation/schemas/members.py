from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class MuteRequest(BaseModel):
    """
    Absolute end of the mute, at least a minute and at most a week ahead.
    Naive datetimes are read as UTC, `null` lifts the mute.
    """
    muted_until: datetime | None = Field(...)


class MemberStateResponse(BaseModel):
    user_id: UUID
    conversation_id: UUID
    muted_until: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
