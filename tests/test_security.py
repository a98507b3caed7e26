import pytest
from starlette.requests import Request

from digital_library.utils.security import get_client_ip


def make_request(headers, client=("192.168.1.20", 5000)):
    return Request({
        "type": "http",
        "headers": [(name.lower().encode(), value.encode()) for name, value in headers.items()],
        "client": client,
    })


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, "203.0.113.7"),
        ({"X-Forwarded-For": " 2001:db8::1 "}, "2001:db8::1"),
        ({"X-Real-IP": "198.51.100.4"}, "198.51.100.4"),
        ({"X-Forwarded-For": "x" * 300}, "192.168.1.20"),
        ({"X-Forwarded-For": "evil", "X-Real-IP": "198.51.100.4"}, "198.51.100.4"),
        ({"X-Real-IP": "localhost"}, "192.168.1.20"),
        ({}, "192.168.1.20"),
    ],
)
async def test_client_ip_only_trusts_real_addresses(headers, expected):
    assert await get_client_ip(make_request(headers)) == expected


async def test_client_ip_without_socket_info():
    assert await get_client_ip(make_request({}, client=None)) == "unknown"
