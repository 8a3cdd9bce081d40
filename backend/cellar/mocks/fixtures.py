"""
Mock external wine data for the secondary lookup source and for details.

There is no real wine-data API behind the `wine_api` source; it answers
from these fixtures so external search always has a second record to
merge and deduplicate against Vivino.

Fixtures:
- wine_api search: one record derived from the query
- details: one canned record per source
"""

from typing import Optional

from ..models import ExternalSource, ExternalWine

MOCK_DEFAULT_REGION = "Sonoma County"
MOCK_DEFAULT_VINTAGE = 2019

MOCK_DETAILS: dict[ExternalSource, dict] = {
    ExternalSource.VIVINO: {
        "name": "Detailed Wine Info",
        "vineyard": "Premium Vineyard",
        "region": "Napa Valley",
        "color": "Red",
        "grape_varieties": ["Cabernet Sauvignon", "Merlot"],
        "vintage_year": 2020,
        "rating": 4.6,
        "description": "A complex wine with notes of dark fruit and oak.",
        "price": 65.00,
        "currency": "USD",
        "food_pairings": ["Steak", "Lamb", "Aged cheese"],
    },
    ExternalSource.WINE_API: {
        "name": "API Wine Details",
        "vineyard": "API Vineyard",
        "region": "Bordeaux",
        "color": "Red",
        "grape_varieties": ["Merlot", "Cabernet Franc"],
        "vintage_year": 2018,
        "rating": 89,
        "description": "Classic Bordeaux blend with elegant structure.",
        "price": 42.00,
        "currency": "USD",
        "food_pairings": ["Beef", "Game", "Hard cheese"],
    },
}


def get_mock_search_result(
    query: str,
    vintage: Optional[int] = None,
    region: Optional[str] = None,
) -> ExternalWine:
    """
    Build the `wine_api` search record for a query.

    Args:
        query: Free-text search
        vintage: Optional vintage filter (echoed back)
        region: Optional region filter (echoed back)

    Returns:
        ExternalWine on the 100-point scale
    """
    return ExternalWine(
        name=f"{query} Estate",
        vineyard="Heritage Vineyards",
        region=region or MOCK_DEFAULT_REGION,
        color="Red",
        grape_varieties=["Pinot Noir"],
        vintage_year=vintage or MOCK_DEFAULT_VINTAGE,
        rating=92,
        description="Elegant wine with bright acidity and cherry flavors.",
        price=38.50,
        currency="USD",
        food_pairings=["Salmon", "Duck", "Mushroom dishes"],
        source=ExternalSource.WINE_API,
    )


def get_mock_details(external_id: str, source: ExternalSource) -> ExternalWine:
    """Canned details for an external id. The id is echoed in the url."""
    data = MOCK_DETAILS[source]
    return ExternalWine(**data, url=f"{source.value}:{external_id}", source=source)
