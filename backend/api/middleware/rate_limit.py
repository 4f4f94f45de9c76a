"""
Request rate limits using slowapi.

Authenticated tool calls are keyed on the user id so a shared NAT or
proxy does not pool unrelated users into one bucket; everything else is
keyed on the client IP. Counters live in Redis when REDIS_URL is set and
in process memory otherwise.

Rate Limits:
- Text tools (article, title, resume): 20 per minute
- Image tools (generate, background, object): 10 per minute
- Like toggles: 60 per minute
- Default: 100 requests per minute
"""

import ipaddress
import logging

from starlette.requests import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "text_generation": "20/minute",
    "image_generation": "10/minute",
    "like": "60/minute",
    "default": "100/minute",
}


def _public_ip(value: str) -> str | None:
    """Return ``value`` if it parses as a globally routable address.

    Private and loopback addresses in forwarding headers are trivially
    spoofed, so they are ignored.
    """
    try:
        addr = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if addr.is_private or addr.is_loopback or addr.is_link_local:
        return None
    return str(addr)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    for candidate in (forwarded.split(",")[0], request.headers.get("x-real-ip", "")):
        ip = candidate and _public_ip(candidate)
        if ip:
            return ip
    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    # Set by get_current_user once the caller is authenticated
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{client_ip(request)}"


if settings.redis_url:
    _storage_uri = settings.redis_url
else:
    _storage_uri = "memory://"
    log = logger.critical if settings.is_production else logger.warning
    log("Rate limiter is using in-memory storage; limits are per process. Set REDIS_URL.")

limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Get the rate limit string for an endpoint group.

    Example:
        >>> get_rate_limit("like")
        "60/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
