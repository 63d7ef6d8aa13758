from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from donation_ledger.models.common import new_id, utcnow


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    type: Literal["donation_approved", "donation_rejected", "item_acquired", "credits_adjusted"]
    title: str
    message: str
    entity_id: str | None = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
