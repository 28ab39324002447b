from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlparse
import socket
import ipaddress

# Desktop Chrome; short-link hosts answer bare clients with a bot wall.
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BROWSER_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept-Language": "ko-KR,ko;q=0.9,en;q=0.8",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
MAX_HTML_BYTES = 2 * 1024 * 1024
MAX_REDIRECTS = 10
REDIRECT_STATUSES = (301, 302, 303, 307, 308)
TEXTUAL_CONTENT_TYPES = ("text/", "json", "xml", "javascript")

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie", "x-api-key"}
PRIVATE_IP_RANGES = [
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "100.64.0.0/10",
        "0.0.0.0/8",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
]


def redact_headers(headers: Mapping[str, Any]) -> dict[str, str]:
    redacted: dict[str, str] = {}
    for key, value in (headers or {}).items():
        key_str = str(key)
        if key_str.lower() in SENSITIVE_HEADERS:
            redacted[key_str] = "[REDACTED]"
        else:
            redacted[key_str] = str(value)
    return redacted


def validate_url(url: str) -> None:
    """
    Rejects anything that is not a public http(s) target.
    Raises ValueError with a short reason.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Unsafe scheme: {parsed.scheme}")

    if not parsed.hostname:
        raise ValueError("Missing hostname")

    try:
        addresses = socket.getaddrinfo(parsed.hostname, None)
    except socket.gaierror:
        # Unresolvable hosts cannot be proven public; fail closed.
        raise ValueError(f"DNS resolution failed for {parsed.hostname}")

    for _, _, _, _, sockaddr in addresses:
        ip_obj = ipaddress.ip_address(sockaddr[0])
        if any(ip_obj in private_range for private_range in PRIVATE_IP_RANGES):
            raise ValueError(f"Target resolves to private IP: {sockaddr[0]}")


def is_textual(headers: Mapping[str, Any] | None) -> bool:
    content_type = str((headers or {}).get("Content-Type") or "").lower()
    if not content_type:
        # Short-link services sometimes omit it on the landing page.
        return True
    return any(marker in content_type for marker in TEXTUAL_CONTENT_TYPES)


def read_limited_text(resp: Any, max_bytes: int | None) -> tuple[str, bool]:
    """Read a streamed response body, giving up once it exceeds max_bytes."""
    if max_bytes is not None:
        content_length = (resp.headers or {}).get("Content-Length")
        try:
            if content_length and int(content_length) > max_bytes:
                return "", True
        except (TypeError, ValueError):
            pass
    chunks: list[bytes] = []
    size = 0
    for chunk in resp.iter_content(chunk_size=16384):
        if not chunk:
            continue
        chunks.append(chunk)
        size += len(chunk)
        if max_bytes is not None and size > max_bytes:
            return "", True
    data = b"".join(chunks)
    try:
        return data.decode(resp.encoding or "utf-8", errors="replace"), False
    except LookupError:
        return data.decode("utf-8", errors="replace"), False
