from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit


@dataclass(frozen=True)
class UrlParts:
    hostname: str
    path: str

    @property
    def reversed_host(self) -> str:
        return reverse_host(self.hostname)


def split_url(url: str) -> Optional[UrlParts]:
    """Hostname and path of ``url``; None when it does not parse."""
    try:
        p = urlsplit(url)
        host = p.hostname or ""
    except ValueError:
        return None
    path = p.path
    if host and not path:
        path = "/"
    return UrlParts(hostname=host, path=path)


def reverse_host(hostname: str) -> str:
    # "www.example.org" -> "org.example.www"
    if not hostname:
        return ""
    return ".".join(reversed(hostname.rstrip(".").split(".")))
