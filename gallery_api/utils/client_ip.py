"""
Client IP extraction for session records and rate limiting.

Behind a proxy or load balancer the socket peer is the proxy, so the
forwarding headers are checked first.
"""
from typing import Optional

from fastapi import Request

# Checked in order; the first non-empty value wins
_FORWARDING_HEADERS = ("X-Forwarded-For", "X-Real-IP", "CF-Connecting-IP", "True-Client-IP")


def get_client_ip(request: Request) -> Optional[str]:
    """
    Return the originating client IP of a request.

    X-Forwarded-For carries "client, proxy1, proxy2"; only the first entry
    is the client. Falls back to the direct peer address.

    Note:
        These headers are client controlled unless the proxy strips them.
        Session records store the value for display only.
    """
    for header in _FORWARDING_HEADERS:
        value = request.headers.get(header)
        if value:
            client_ip = value.split(",")[0].strip()
            if client_ip:
                return client_ip

    if request.client:
        return request.client.host

    return None


def get_client_identifier(request: Request) -> str:
    """Rate limiting key: client IP or "unknown"."""
    return get_client_ip(request) or "unknown"
