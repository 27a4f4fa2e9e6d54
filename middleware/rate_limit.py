# middleware/rate_limit.py
"""
Rate limiting configuration using slowapi.

Usage in route files:
    from middleware.rate_limit import limiter

    @router.post("/expensive")
    @limiter.limit("5/minute")
    async def my_endpoint(request: Request):
        ...

Every analysis run fans out into one model call per ticker, so the analysis
routes carry a tighter limit than the default.
"""
import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

logger = logging.getLogger(__name__)


# X-Forwarded-For is honoured only when a trusted proxy sets it.
TRUST_PROXY_HEADERS = os.getenv("TRUST_PROXY_HEADERS", "0") == "1"


def _get_rate_limit_key(request: Request) -> str:
    """
    Identify the caller for rate-limiting.

    With TRUST_PROXY_HEADERS=1 the first X-Forwarded-For hop is the client;
    otherwise, and when the header is absent, the socket peer address is used.
    """
    if TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",", 1)[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


# ─── Default limits ────────────────────────────────────────────────
# Env-overridable so you can tune per-environment without redeploying.
DEFAULT_RATE_LIMIT = os.getenv("RATE_LIMIT_DEFAULT", "60/minute")

limiter = Limiter(
    key_func=_get_rate_limit_key,
    default_limits=[DEFAULT_RATE_LIMIT],
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
    strategy="fixed-window",
)
