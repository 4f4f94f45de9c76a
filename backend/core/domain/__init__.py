# Domain Entities
# Pure business objects with no external dependencies
from .entitlement import RequestContext, UsageSummary

__all__ = [
    "RequestContext",
    "UsageSummary",
]
