"""Entitlement domain entities."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    """Per-request entitlement snapshot threaded through the generation pipeline."""

    user_id: str
    plan: str
    free_usage_count: int

    @property
    def is_premium(self) -> bool:
        return self.plan == "premium"


@dataclass(frozen=True)
class UsageSummary:
    """Usage counter view returned to clients."""

    plan: str
    free_usage: int
    limit: Optional[int]
    remaining: Optional[int]
