"""Server URL validation to keep the bridge off internal networks (SSRF)."""

import ipaddress
import re
import socket
from urllib.parse import urlparse

ALLOWED_SCHEMES = {"http", "https"}

BLOCKED_HOSTNAMES = {
    "localhost",
    "127.0.0.1",
    "::1",
    "0.0.0.0",
    "169.254.169.254",
}

# Reserved suffixes that only resolve inside private networks
BLOCKED_HOST_SUFFIXES = (".internal", ".localhost")

# Shorthand IPv4 forms the resolver accepts: 127.1, 2130706433, 0x7f000001, 0177.0.0.1
NUMERIC_HOST_RE = re.compile(r"^(0x[0-9a-f]*|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+)){0,3}$")

BLOCKED_NETWORKS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("0.0.0.0/32"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("::/128"),
    ipaddress.ip_network("fe80::/10"),
]


def _parse_numeric_ipv4(hostname: str) -> ipaddress.IPv4Address | None:
    """Normalize integer, hex, octal and short dotted IPv4 hosts to an address."""
    if not NUMERIC_HOST_RE.match(hostname):
        return None
    try:
        return ipaddress.IPv4Address(socket.inet_aton(hostname))
    except OSError:
        return None


def _is_blocked_host(hostname: str) -> bool:
    """Check a bare hostname or IP literal against the blocklists."""
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(BLOCKED_HOST_SUFFIXES):
        return True

    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        address = _parse_numeric_ipv4(hostname)
        if address is None:
            return False

    if address.version == 6 and address.ipv4_mapped is not None:
        address = address.ipv4_mapped

    return any(address in network for network in BLOCKED_NETWORKS)


def validate_server_url(url: str) -> str | None:
    """Validate a server URL before the bridge is allowed to contact it.

    Args:
        url: Candidate MCP server URL

    Returns:
        A human-readable reason when the URL is rejected, None when it is safe
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return f"Server URL is not a valid URL: {url}"

    if not parsed.scheme:
        return f"Server URL is not a valid URL: {url}"

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return f"Server URL must use http or https (got {parsed.scheme}:)"

    if not hostname:
        return f"Server URL is not a valid URL: {url}"

    hostname = hostname.lower().rstrip(".")
    if _is_blocked_host(hostname):
        return f"Server URL points to an internal/private address: {hostname}"

    return None
