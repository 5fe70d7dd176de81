"""Canned answers for demo mode (no network, no LLM)."""

from __future__ import annotations

from datetime import datetime, timezone

from h2obot.models.answer import Advisory, QueryResponse, Safety, Source


def demo_for(text: str) -> QueryResponse:
    """Return a canned answer keyed on the place mentioned in ``text``."""

    t = text.lower()
    now = datetime.now(timezone.utc)

    if "new york" in t or "nyc" in t:
        return QueryResponse(
            answer=(
                "Yes. NYC tap water generally meets or exceeds federal and state standards. Use cold "
                "water and run the tap about 30 seconds if it has been unused for hours. Older "
                "buildings may have lead; a certified lead-removing filter is prudent for infants "
                "and pregnant people."
            ),
            sources=[
                Source(
                    title="NYC Drinking Water Quality Reports",
                    url="https://www.nyc.gov/site/dep/water/drinking-water-quality-reports.page",
                    publisher="NYC DEP",
                ),
                Source(
                    title="Lead in Drinking Water Basics",
                    url="https://www.epa.gov/ground-water-and-drinking-water/lead-drinking-water-basic-information",
                    publisher="US EPA",
                ),
            ],
            safety=Safety(confidence="high", advisories=[], last_updated=now),
            suggestions=["How do I get a free lead test kit in NYC?", "Are PFAS detected in my borough?"],
        )

    if "flint" in t:
        return QueryResponse(
            answer=(
                "Caution. Flint has replaced many lead service lines and recent samples are often "
                "below action levels, but premise plumbing can still leach lead. Use a certified "
                "lead-removing filter and follow city notices."
            ),
            sources=[
                Source(
                    title="City of Flint Water Quality Updates",
                    url="https://www.cityofflint.com/updates/water/",
                    publisher="City of Flint",
                ),
                Source(
                    title="Lead and Copper Rule",
                    url="https://www.epa.gov/dwreginfo/lead-and-copper-rule",
                    publisher="US EPA",
                ),
            ],
            safety=Safety(
                confidence="medium",
                advisories=[Advisory(level="advisory", title="Use certified lead-removing filter")],
                last_updated=now,
            ),
            suggestions=["Where can I pick up replacement filter cartridges?"],
        )

    if "jackson" in t:
        return QueryResponse(
            answer=(
                "Mixed. Jackson, MS has faced intermittent system issues and advisories. Check current "
                "notices. If none are active, properly treated water may be safe; consider a "
                "point-of-use filter and keep emergency water on hand."
            ),
            sources=[
                Source(title="City of Jackson Water Updates", url="https://www.jacksonms.gov/", publisher="City of Jackson"),
                Source(
                    title="CDC Drinking Water Advisories",
                    url="https://www.cdc.gov/healthywater/emergency/drinking/drinking-water-advisories.html",
                    publisher="CDC",
                ),
            ],
            safety=Safety(
                confidence="low",
                advisories=[Advisory(level="boil", title="Monitor boil-water notices")],
                last_updated=now,
            ),
            suggestions=["Is there a boil-water notice today?"],
        )

    return QueryResponse(
        answer=(
            "I couldn't find specifics for that location in the demo. "
            "Try the nearest city or county and state."
        ),
        sources=[Source(title="Consumer Confidence Reports (CCR)", url="https://www.epa.gov/ccr", publisher="US EPA")],
        safety=Safety(confidence="unknown", advisories=[], last_updated=now),
        suggestions=["Where do I find my city's CCR?", "How do I test my tap for lead?"],
    )
