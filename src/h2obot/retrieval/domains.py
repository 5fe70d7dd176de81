"""Trust tiers and the federal allow-list."""

from __future__ import annotations

from h2obot.models.document import Tier
from h2obot.utils.urls import host_matches, hostname

# Federal domains trusted for every location
BASE_ALLOWED_DOMAINS: frozenset[str] = frozenset({"epa.gov", "cdc.gov"})

_FEDERAL_GOV_MARKERS: tuple[str, ...] = ("epa.gov", "cdc.gov")

_DOMAIN_TIERS: dict[str, Tier] = {
    "who.int": "federal",
}


def tier_for(url: str) -> Tier:
    """Classify a source by hostname alone."""

    host = hostname(url)
    if not host:
        return "other"
    if host.endswith(".gov"):
        return "federal" if any(m in host for m in _FEDERAL_GOV_MARKERS) else "state"
    if host.endswith(".us"):
        return "local"
    for domain, tier in _DOMAIN_TIERS.items():
        if host_matches(host, (domain,)):
            return tier
    return "other"
