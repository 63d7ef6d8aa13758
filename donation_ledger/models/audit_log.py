from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from donation_ledger.models.common import new_id, utcnow


class AuditEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str | None = None  # None for system events
    event_type: str
    entity_type: str
    entity_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
