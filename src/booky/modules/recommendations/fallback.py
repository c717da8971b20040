from __future__ import annotations

from booky.modules.recommendations.schemas import CostBreakdown, Recommendation

_FALLBACK: tuple[dict, ...] = (
    {
        "name": "The Fillmore",
        "reason": (
            "Historic venue with excellent acoustics and iconic atmosphere, perfect for "
            "memorable events with character."
        ),
        "features": [
            "Historic Architecture",
            "Professional Sound System",
            "Flexible Layout",
            "Central SF Location",
        ],
        "setup": "Cocktail style with lounge seating areas and central dance floor",
        "catering": "Partner with local caterers for elevated appetizers and craft cocktails",
        "cost": (2500, 3500, 800, 6800),
    },
    {
        "name": "Great American Music Hall",
        "reason": (
            "Intimate Victorian venue with ornate details and excellent sightlines for "
            "sophisticated gatherings."
        ),
        "features": ["Victorian Architecture", "Balcony Seating", "Full Bar", "Historic Charm"],
        "setup": "Theater-style seating with cocktail reception area",
        "catering": "Full-service catering with wine pairings and hors d'oeuvres",
        "cost": (3000, 4000, 1000, 8000),
    },
    {
        "name": "Fox Theater Oakland",
        "reason": (
            "Grand Art Deco theater offering dramatic ambiance and spacious layout for "
            "larger celebrations."
        ),
        "features": [
            "Art Deco Design",
            "Large Capacity",
            "Professional Lighting",
            "Oakland Location",
        ],
        "setup": "Grand reception with multiple seating areas and stage presentation",
        "catering": "Premium catering service with multiple course options",
        "cost": (4000, 5000, 1200, 10200),
    },
)


def fallback_recommendations() -> list[Recommendation]:
    """Static Bay Area venue list served when the provider is unavailable."""
    out = []
    for item in _FALLBACK:
        venue, catering, extras, total = item["cost"]
        out.append(
            Recommendation(
                name=item["name"],
                reason=item["reason"],
                features=list(item["features"]),
                setup=item["setup"],
                catering=item["catering"],
                cost_breakdown=CostBreakdown(
                    venue=venue, catering=catering, extras=extras, total=total
                ),
            )
        )
    return out
