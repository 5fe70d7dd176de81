"""Heuristic location resolution.

Turns a free-text location ("Flint, MI", "brooklyn new york") into a state code and the set
of state and municipal domains trusted for it. Pure and deterministic: no network, no
geocoder.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

STATE_NAMES: dict[str, str] = {
    "alabama": "AL",
    "alaska": "AK",
    "arizona": "AZ",
    "arkansas": "AR",
    "california": "CA",
    "colorado": "CO",
    "connecticut": "CT",
    "delaware": "DE",
    "district of columbia": "DC",
    "florida": "FL",
    "georgia": "GA",
    "hawaii": "HI",
    "idaho": "ID",
    "illinois": "IL",
    "indiana": "IN",
    "iowa": "IA",
    "kansas": "KS",
    "kentucky": "KY",
    "louisiana": "LA",
    "maine": "ME",
    "maryland": "MD",
    "massachusetts": "MA",
    "michigan": "MI",
    "minnesota": "MN",
    "mississippi": "MS",
    "missouri": "MO",
    "montana": "MT",
    "nebraska": "NE",
    "nevada": "NV",
    "new hampshire": "NH",
    "new jersey": "NJ",
    "new mexico": "NM",
    "new york": "NY",
    "north carolina": "NC",
    "north dakota": "ND",
    "ohio": "OH",
    "oklahoma": "OK",
    "oregon": "OR",
    "pennsylvania": "PA",
    "rhode island": "RI",
    "south carolina": "SC",
    "south dakota": "SD",
    "tennessee": "TN",
    "texas": "TX",
    "utah": "UT",
    "vermont": "VT",
    "virginia": "VA",
    "washington": "WA",
    "west virginia": "WV",
    "wisconsin": "WI",
    "wyoming": "WY",
}

STATE_CODES: frozenset[str] = frozenset(STATE_NAMES.values())

# Longest first so "west virginia" is tried before "virginia", "arkansas" before "kansas"
_NAMES_BY_LENGTH: tuple[str, ...] = tuple(sorted(STATE_NAMES, key=len, reverse=True))

_STATE_CODE_RE = re.compile(r"\b[A-Z]{2}\b")
_TOKEN_RE = re.compile(r"[a-z0-9]+")

STATE_DOMAINS: dict[str, frozenset[str]] = {
    "CA": frozenset({"waterboards.ca.gov", "cdph.ca.gov"}),
    "FL": frozenset({"floridahealth.gov", "floridadep.gov"}),
    "MI": frozenset({"michigan.gov"}),
    "MS": frozenset({"msdh.ms.gov"}),
    "NY": frozenset({"health.ny.gov", "nyc.gov", "dep.nyc.gov"}),
    "PA": frozenset({"dep.pa.gov", "health.pa.gov"}),
    "TX": frozenset({"tceq.texas.gov", "dshs.texas.gov"}),
}


@dataclass(frozen=True)
class LocationResolution:
    """Resolved location facts."""

    state_code: str | None
    allowed_domains: frozenset[str]
    normalized: str


@dataclass(frozen=True)
class DomainRule:
    """Adds ``domains`` when ``applies(normalized_text, state_code)`` holds."""

    name: str
    applies: Callable[[str, str | None], bool]
    domains: frozenset[str]


def _mentions(*needles: str) -> Callable[[str, str | None], bool]:
    pattern = re.compile("|".join(re.escape(n) for n in needles))
    return lambda text, _state: pattern.search(text) is not None


def _jackson_mississippi(text: str, state: str | None) -> bool:
    return "jackson" in text and (state == "MS" or "mississippi" in text)


DOMAIN_RULES: tuple[DomainRule, ...] = (
    DomainRule(
        name="nyc",
        applies=_mentions("nyc", "new york city", "manhattan", "brooklyn", "queens", "bronx", "staten island"),
        domains=frozenset({"nyc.gov", "dep.nyc.gov"}),
    ),
    DomainRule(
        name="flint",
        applies=_mentions("flint"),
        domains=frozenset({"cityofflint.com", "michigan.gov"}),
    ),
    DomainRule(
        name="jackson_ms",
        applies=_jackson_mississippi,
        domains=frozenset({"jacksonms.gov", "msdh.ms.gov"}),
    ),
    DomainRule(
        name="austin",
        applies=_mentions("austin", "travis county"),
        domains=frozenset({"austintexas.gov", "traviscountytx.gov"}),
    ),
    DomainRule(
        name="pittsburgh",
        applies=_mentions("pittsburgh", "allegheny"),
        domains=frozenset({"pgh2o.com", "alleghenycounty.us"}),
    ),
)


def normalize_location(text: str) -> str:
    """Lower-case, trim and rejoin alphanumeric runs with single spaces."""

    return " ".join(_TOKEN_RE.findall(text.strip().lower()))


def infer_state_code(text: str, normalized: str | None = None) -> str | None:
    """Infer a two-letter state code from raw location text."""

    for m in _STATE_CODE_RE.finditer(text):
        if m.group(0) in STATE_CODES:
            return m.group(0)

    normalized = normalize_location(text) if normalized is None else normalized
    for name in _NAMES_BY_LENGTH:
        if name in normalized:
            return STATE_NAMES[name]
    return None


def resolve_location(text: str | None) -> LocationResolution:
    """Resolve a location string to a state code and trusted domains."""

    raw = text or ""
    normalized = normalize_location(raw)
    state = infer_state_code(raw, normalized)

    domains: set[str] = set(STATE_DOMAINS.get(state, frozenset())) if state else set()
    for rule in DOMAIN_RULES:
        if rule.applies(normalized, state):
            domains |= rule.domains

    return LocationResolution(state_code=state, allowed_domains=frozenset(domains), normalized=normalized)
