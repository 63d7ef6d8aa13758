from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

Category = Literal["clothing", "other"]
Condition = Literal["excellent", "good", "fair"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex
