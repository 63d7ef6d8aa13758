from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from donation_ledger.models.common import utcnow


class StoreEvent(BaseModel):
    """Published to subscribers once per committed mutation."""

    model_config = ConfigDict(frozen=True)

    version: int
    type: str
    entity_id: str | None = None
    collections: tuple[str, ...] = ()
    created_at: datetime = Field(default_factory=utcnow)
