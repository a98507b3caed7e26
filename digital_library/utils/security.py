import ipaddress
from typing import Optional

from fastapi import Request

# Width of the ip_address columns
MAX_IP_LENGTH = 45


def _valid_ip(value: Optional[str]) -> Optional[str]:
    """Normalized address, or None if the value is not an IP that fits storage"""
    if not value:
        return None
    try:
        address = str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None
    return address if len(address) <= MAX_IP_LENGTH else None


async def get_client_ip(request: Request) -> str:
    """Get client IP address with proper header checking"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        address = _valid_ip(forwarded_for.split(",")[0])
        if address:
            return address

    address = _valid_ip(request.headers.get("X-Real-IP"))
    if address:
        return address

    if request.client and request.client.host:
        return request.client.host[:MAX_IP_LENGTH]
    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")
