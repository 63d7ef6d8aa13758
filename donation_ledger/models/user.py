from enum import Enum

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    DONOR = "donor"
    BENEFICIARY = "beneficiary"
    BUSINESS = "business"
    ADMIN = "admin"


class Actor(BaseModel):
    """Caller of a store operation, as asserted by the external auth layer."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role

    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
