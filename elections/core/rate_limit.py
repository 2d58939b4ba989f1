"""Rate limiting configuration."""
import os
from slowapi import Limiter
from slowapi.util import get_remote_address

from elections.core import config


def get_client_ip(request):
    """
    Get the client IP for rate limiting and anonymous vote checks.

    ``X-Forwarded-For`` is only believed when the connection itself comes
    from a configured trusted proxy. The client is then the rightmost
    forwarded address that is not a trusted proxy.
    """
    peer = get_remote_address(request)
    trusted = config.settings.TRUSTED_PROXIES
    forwarded = request.headers.get("X-Forwarded-For")
    if not forwarded or peer not in trusted:
        return peer

    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return peer


# Uses Redis if REDIS_URL is set, falls back to memory for local dev
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["100/minute"],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window"
)

# Rate limit definitions for different endpoint categories.
# Voters behind one NAT share a public IP, so the public limits stay generous.
RATE_LIMITS = {
    "ballot": "60/minute",
    "retrieve": "20/minute",  # Slows down guessing of access keys
    "public_read": "200/minute",

    "admin_read": "200/minute",
    "admin_write": "60/minute",
}
