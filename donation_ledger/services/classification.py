"""Advisory item classification: category guess, confidence and credit estimate.

The result is displayed to admins next to a donation. It never changes a
donation's status; approval and rejection always need an explicit review.
"""

import re

from pydantic import BaseModel, Field

from donation_ledger.core.config import get_settings
from donation_ledger.models.common import Category, Condition

CLOTHING_KEYWORDS = frozenset({
    "shirt", "t-shirt", "tshirt", "pants", "jeans", "dress", "skirt", "clothes", "clothing",
    "jacket", "coat", "sweater", "hoodie", "shorts", "shoes", "socks", "underwear",
})

CONDITION_MULTIPLIER: dict[str, float] = {"excellent": 1.5, "good": 1.0, "fair": 0.7}

SUGGESTIONS: dict[str, list[str]] = {
    "clothing": ["Check for stains or damage", "Wash before donation", "Include size information"],
    "other": ["Provide detailed description", "Include condition information", "Add usage instructions"],
}

_WORD_RE = re.compile(r"[a-z][a-z\-]*")


class ClassificationResult(BaseModel):
    category: Category
    confidence: float = Field(ge=0, le=1)
    suggestions: list[str] = Field(default_factory=list)


def classify(title: str, description: str = "") -> ClassificationResult:
    words = set(_WORD_RE.findall(f"{title} {description}".lower()))
    if words & CLOTHING_KEYWORDS:
        category, confidence = "clothing", 0.9
    else:
        category, confidence = "other", 0.7
    return ClassificationResult(category=category, confidence=confidence, suggestions=SUGGESTIONS[category])


def estimate_credit_value(category: Category, condition: Condition = "good") -> int:
    s = get_settings()
    base = s.credits_base_clothing if category == "clothing" else s.credits_base_other
    return round(base * CONDITION_MULTIPLIER[condition])
