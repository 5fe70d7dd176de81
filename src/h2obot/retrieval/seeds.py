"""Candidate URL generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from h2obot.config import Settings
from h2obot.logging import get_logger
from h2obot.retrieval.domains import BASE_ALLOWED_DOMAINS
from h2obot.retrieval.locations import LocationResolution
from h2obot.tools.web_search import WebSearchError, WebSearchProvider

logger = get_logger(__name__)

FEDERAL_SEEDS: tuple[str, ...] = (
    "https://www.epa.gov/ccr",
    "https://www.cdc.gov/healthywater/emergency/drinking/drinking-water-advisories.html",
)


@dataclass(frozen=True)
class CuratedSeed:
    """A known landing page, used when any domain of its group is allowed."""

    domains: frozenset[str]
    url: str


CURATED_SEEDS: tuple[CuratedSeed, ...] = (
    CuratedSeed(
        frozenset({"nyc.gov", "dep.nyc.gov"}),
        "https://www.nyc.gov/site/dep/water/drinking-water-quality-reports.page",
    ),
    CuratedSeed(frozenset({"health.ny.gov"}), "https://www.health.ny.gov/environmental/water/drinking/"),
    CuratedSeed(frozenset({"cityofflint.com"}), "https://www.cityofflint.com/updates/water/"),
    CuratedSeed(frozenset({"michigan.gov"}), "https://www.michigan.gov/egle/about/organization/drinking-water-and-environmental-health"),
    CuratedSeed(frozenset({"jacksonms.gov"}), "https://www.jacksonms.gov/"),
    CuratedSeed(frozenset({"msdh.ms.gov"}), "https://msdh.ms.gov/"),
    CuratedSeed(frozenset({"austintexas.gov", "traviscountytx.gov"}), "https://www.austintexas.gov/department/water"),
    CuratedSeed(frozenset({"tceq.texas.gov", "dshs.texas.gov"}), "https://www.tceq.texas.gov/drinkingwater"),
    CuratedSeed(frozenset({"pgh2o.com", "alleghenycounty.us"}), "https://www.pgh2o.com/your-water/water-quality"),
    CuratedSeed(frozenset({"dep.pa.gov", "health.pa.gov"}), "https://www.dep.pa.gov/Citizens/My-Water/PublicDrinkingWater/"),
    CuratedSeed(frozenset({"waterboards.ca.gov", "cdph.ca.gov"}), "https://www.waterboards.ca.gov/drinking_water/"),
    CuratedSeed(frozenset({"floridahealth.gov", "floridadep.gov"}), "https://floridadep.gov/water/source-drinking-water"),
)

SEARCH_TEMPLATES: tuple[str, ...] = (
    "{location} Consumer Confidence Report",
    "{location} drinking water report",
    "{location} boil water notice",
)


def curated_seeds(allowed_domains: Iterable[str]) -> list[str]:
    """Curated landing pages for the allowed domains, in table order."""

    allowed = set(allowed_domains)
    return [seed.url for seed in CURATED_SEEDS if seed.domains & allowed]


def fixed_seeds(allowed_domains: Iterable[str]) -> list[str]:
    """Federal seeds followed by the curated pages for the allowed domains, deduplicated."""

    return list(dict.fromkeys([*FEDERAL_SEEDS, *curated_seeds(allowed_domains)]))


def search_queries(location: str, question: str) -> list[str]:
    """Templated search queries for a location and question."""

    location = location.strip()
    question = question.strip()
    queries: list[str] = []
    if question:
        queries.append(f"{question} {location}".strip())
    if location:
        queries.extend(t.format(location=location) for t in SEARCH_TEMPLATES)
    return queries


class SeedGenerator:
    """Build the deduplicated, ordered candidate URL list for one query."""

    def __init__(self, settings: Settings, search_provider: WebSearchProvider | None = None) -> None:
        self._settings = settings
        self._search = search_provider

    def generate(self, location: str, question: str, resolution: LocationResolution) -> list[str]:
        """Generate seed URLs.

        Order is federal seeds, curated seeds, then search hits in query order; duplicates
        keep their first position.
        """

        seeds: dict[str, None] = dict.fromkeys(fixed_seeds(resolution.allowed_domains))

        if self._search is not None:
            allow = sorted(BASE_ALLOWED_DOMAINS | resolution.allowed_domains)
            for query in search_queries(location, question):
                for url in self._run_search(self._search, query, allow):
                    seeds.setdefault(url, None)

        return list(seeds)

    def _run_search(self, provider: WebSearchProvider, query: str, include_domains: list[str]) -> list[str]:
        try:
            results = provider.search(
                query,
                max_results=self._settings.search_max_results,
                include_domains=include_domains,
            )
        except WebSearchError as e:
            if self._settings.debug:
                logger.info("Search failed; treating as no results", extra={"query": query, "error": str(e)})
            return []
        except Exception:
            logger.exception("Unexpected search error", extra={"query": query})
            return []
        return [str(r.url) for r in results]
