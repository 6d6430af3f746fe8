"""Caller IP detection."""

from fastapi import Request

from weather_relay.core.logging import get_logger

logger = get_logger(__name__)

FORWARDED_FOR_HEADER = "X-Forwarded-For"


def resolve_client_ip(request: Request, override: str | None = None) -> str:
    """Work out which IP address to geolocate for a request.

    An explicit ``override`` (the ``ip`` query parameter) wins and is used
    verbatim. Otherwise the first ``X-Forwarded-For`` entry is used, and
    failing that the peer address of the connection.
    """
    if override:
        logger.info("client_ip_resolved", ip=override, source="parameter")
        return override

    forwarded_for = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
        logger.info("client_ip_resolved", ip=ip, source="forwarded_for")
        return ip

    # ASGI reports the peer as a (host, port) pair
    ip = request.client.host if request.client else ""
    logger.info("client_ip_resolved", ip=ip, source="peer")
    return ip
