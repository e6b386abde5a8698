from typing import Any, List, Optional
from urllib.parse import SplitResult, urlsplit

DEFAULT_PORTS = {"http": 80, "https": 443, "ftp": 21, "ws": 80, "wss": 443}

# Code points a browser refuses inside a host name.
FORBIDDEN_HOST_CHARS = frozenset(" \t\n\r#%/<>?@[\\]^|")


def as_list(value: Any) -> List[Any]:
    """Return value as a list: None -> [], scalar -> [scalar], list -> list.

    Falsy entries are dropped so an empty element never shows up as a value.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if v]
    return [value] if value else []


def parse_url(raw: Any) -> Optional[SplitResult]:
    """Parse an absolute URL, returning None if it is malformed.

    A URL needs a scheme and a host; anything else (bare hostnames,
    relative paths, bad ports) counts as malformed.
    """
    if not isinstance(raw, str):
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        parsed = urlsplit(raw)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    if url_host(parsed) is None:
        return None
    return parsed


def _ascii_hostname(hostname: str) -> Optional[str]:
    """Punycode form of an internationalized host name, None if it cannot be encoded."""
    if hostname.isascii():
        return hostname
    try:
        return hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return None


def url_host(url: SplitResult) -> Optional[str]:
    """Host component of a parsed URL: lower-cased ASCII hostname plus non-default port.

    Internationalized names are compared in punycode, IPv6 literals keep
    their brackets.
    """
    try:
        hostname = url.hostname
        port = url.port
    except ValueError:
        return None
    if not hostname or any(c in FORBIDDEN_HOST_CHARS for c in hostname):
        return None
    if ":" in hostname:
        hostname = f"[{hostname}]"
    else:
        hostname = _ascii_hostname(hostname)
        if hostname is None:
            return None
    if port is not None and DEFAULT_PORTS.get(url.scheme.lower()) != port:
        return f"{hostname}:{port}"
    return hostname


def host_of(raw: Any) -> Optional[str]:
    """Host of a raw URL string, None when it is absent or malformed."""
    parsed = parse_url(raw)
    return url_host(parsed) if parsed is not None else None
