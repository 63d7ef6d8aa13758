from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from donation_ledger.models.common import Category, new_id, utcnow


class ListingDraft(BaseModel):
    """Fields a business supplies when posting a listing directly."""

    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: Category = "other"
    cloth_type: str | None = None
    size: str | None = None
    color: str | None = None
    images: list[str] = Field(default_factory=list)
    price: float | None = Field(default=None, ge=0)
    credits: int = Field(ge=0)
    location: str | None = None


class Listing(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    business_id: str | None = None
    donor_id: str | None = None
    donation_id: str | None = None
    title: str
    description: str = ""
    category: Category = "other"
    cloth_type: str | None = None
    size: str | None = None
    color: str | None = None
    images: tuple[str, ...] = ()
    price: float | None = Field(default=None, ge=0)  # None or 0 = free item
    credits: int = Field(ge=0)
    is_available: bool = True
    location: str | None = None
    acquired_by: str | None = None
    acquired_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _one_source(self) -> "Listing":
        if (self.business_id is None) == (self.donor_id is None):
            raise ValueError("listing needs exactly one of business_id or donor_id")
        return self

    @property
    def owner_id(self) -> str:
        return self.business_id or self.donor_id  # type: ignore[return-value]

    @property
    def is_paid(self) -> bool:
        return bool(self.price)


class ListingFilter(BaseModel):
    owner_id: str | None = None
    category: Category | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    free_only: bool = False
    newest_first: bool = False

    def matches(self, listing: Listing) -> bool:
        if self.owner_id is not None and listing.owner_id != self.owner_id:
            return False
        if self.category is not None and listing.category != self.category:
            return False
        price = listing.price or 0
        if self.free_only and price:
            return False
        if self.min_price is not None and price < self.min_price:
            return False
        if self.max_price is not None and price > self.max_price:
            return False
        return True
