"""URL and hostname helpers."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse


def hostname(url: str) -> str:
    """Lower-cased hostname of ``url``, or ``""`` when it has none."""

    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def host_matches(host: str, domains: Iterable[str]) -> bool:
    """True when ``host`` equals one of ``domains`` or is a subdomain of it."""

    if not host:
        return False
    host = host.lower()
    for domain in domains:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False
