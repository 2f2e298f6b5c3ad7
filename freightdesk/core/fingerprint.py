"""
Request fingerprinting for refresh-token binding.

A fingerprint is a secondary signal: it ties a refresh token to the client
context it was issued to (network subnet, browser, language). It is compared
for equality only and is not a secret.

The inputs trade usability for security. Switching networks, toggling a VPN,
or a browser update all change the fingerprint and end the session family.
"""

import ipaddress
from collections.abc import Iterable
from typing import Protocol

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field

from freightdesk.config import settings
from freightdesk.core.logging import get_logger

logger = get_logger(__name__)

MAX_FINGERPRINT_LENGTH = 1000
MAX_COMPONENT_LENGTH = 255


class Fingerprint(BaseModel):
    """Opaque, comparable binding tag."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(min_length=1, max_length=MAX_FINGERPRINT_LENGTH)

    @classmethod
    def from_items(cls, items: Iterable[tuple[str, str]]) -> "Fingerprint":
        """Build a fingerprint from labelled components: ``label=value;label=value``."""
        return cls(value=";".join(f"{label}={value}" for label, value in items))

    def __str__(self) -> str:
        return self.value


class FingerprintProvider(Protocol):
    """Produces the fingerprint of the current request context."""

    def current(self) -> Fingerprint: ...


def client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Checks X-Forwarded-For header first (for proxies/load balancers),
    falls back to direct client IP.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (client)
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def ip_subnet(ip: str) -> str:
    """
    Collapse an address to its subnet so DHCP churn inside one network is tolerated.

    Unparseable values (e.g. "unknown", "testclient") are returned unchanged.
    """
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return ip

    prefix = (
        settings.FINGERPRINT_IPV4_PREFIX
        if address.version == 4
        else settings.FINGERPRINT_IPV6_PREFIX
    )
    return str(ipaddress.ip_network(f"{address}/{prefix}", strict=False))


class RequestFingerprintProvider:
    """Fingerprint derived from the headers and peer address of one request."""

    def __init__(self, request: Request) -> None:
        self._request = request

    def current(self) -> Fingerprint:
        headers = self._request.headers
        subnet = ip_subnet(client_ip(self._request))[:MAX_COMPONENT_LENGTH]
        user_agent = headers.get("User-Agent", "")[:MAX_COMPONENT_LENGTH]
        accept_language = headers.get("Accept-Language", "")[:MAX_COMPONENT_LENGTH]

        logger.debug("fingerprint_generated", ip_subnet=subnet)

        return Fingerprint.from_items(
            [
                ("ipSubnet", subnet),
                ("userAgent", user_agent),
                ("acceptLanguage", accept_language),
            ]
        )
