from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from donation_ledger.models.common import Category, Condition, new_id, utcnow


class DonationStatus(str, Enum):
    UPLOADED = "uploaded"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class DonationDraft(BaseModel):
    """Donor-supplied fields of a new donation."""

    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: Category = "other"
    cloth_type: str | None = None
    size: str | None = None
    color: str | None = None
    images: list[str] = Field(default_factory=list)
    condition: Condition = "good"
    value: int | None = Field(default=None, ge=0)  # estimated from category/condition when omitted
    ai_confidence: float | None = Field(default=None, ge=0, le=1)


class Donation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    donor_id: str
    title: str
    description: str = ""
    category: Category = "other"
    cloth_type: str | None = None
    size: str | None = None
    color: str | None = None
    images: tuple[str, ...] = ()
    value: int = Field(ge=0)
    status: DonationStatus = DonationStatus.UPLOADED
    ai_confidence: float | None = Field(default=None, ge=0, le=1)  # advisory only
    admin_notes: str | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status is not DonationStatus.UPLOADED
