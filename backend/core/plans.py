"""
Plan configuration and quota decisions.

This module is the single source of truth for plan limits and which tools
each plan may use. It lives in core/ so both service and API layers can
import from it without creating circular dependencies.
"""

# Successful usage-gated generations allowed on the free plan
FREE_USAGE_LIMIT = 10

FREE = "free"
PREMIUM = "premium"

# Tools counted against the free usage counter
USAGE_GATED_TOOLS = frozenset({"article", "blog-title"})

# Tools that require an active premium plan
PREMIUM_ONLY_TOOLS = frozenset({
    "image",
    "background-removal",
    "object-removal",
    "resume-review",
})

PLANS = {
    FREE: {
        "name": "Free",
        "features": [
            f"{FREE_USAGE_LIMIT} article or title generations",
            "Community feed",
        ],
        "limits": {
            "free_usage": FREE_USAGE_LIMIT,
        },
    },
    PREMIUM: {
        "name": "Premium",
        "features": [
            "Unlimited article and title generation",
            "Image generation",
            "Background and object removal",
            "Resume review",
        ],
        "limits": {
            "free_usage": None,  # unlimited
        },
    },
}


def allow_usage(plan: str, free_usage_count: int, limit: int = FREE_USAGE_LIMIT) -> bool:
    """Return True if a usage-gated tool may run.

    The boundary is strict: a free user with ``free_usage_count == limit``
    is denied.
    """
    return plan == PREMIUM or free_usage_count < limit


def next_usage(plan: str, free_usage_count: int) -> int | None:
    """Usage counter after one more successful gated call (None for premium)."""
    if plan == PREMIUM:
        return None
    return free_usage_count + 1


def allow_plan(plan: str, tool: str) -> bool:
    """Return True if ``plan`` may use ``tool`` at all."""
    if tool in PREMIUM_ONLY_TOOLS:
        return plan == PREMIUM
    return True


def remaining_usage(plan: str, free_usage_count: int, limit: int = FREE_USAGE_LIMIT) -> int | None:
    if plan == PREMIUM:
        return None
    return max(limit - free_usage_count, 0)
