from starlette.requests import Request

from shortener.core.setting import settings


def get_peer_ip(request: Request) -> str:
    """Address of the directly connected peer."""
    return request.client.host if request.client else "unknown"


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.
    The header is client controlled, so use this for logging and analytics
    only; see get_rate_limit_key for anything that must not be spoofable.

    Args:
        request: Incoming request

    Returns:
        IP address as string
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    return get_peer_ip(request)


def get_rate_limit_key(request: Request) -> str:
    """
    Identity used by the rate limiter.

    The peer address, unless the peer is listed in TRUSTED_PROXIES, in which
    case the address the proxy reports in X-Forwarded-For.
    """
    peer = get_peer_ip(request)
    if peer in settings.TRUSTED_PROXIES:
        return get_client_ip(request)
    return peer
