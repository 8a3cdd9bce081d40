"""
HTML parsing for Vivino search result pages.

Turns the rendered search page into raw ExternalWine records. Values
are left on the source's own scale (ratings in 1-5 stars); the
normalizer converts them afterwards.
"""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from cellar.models import ExternalSource, ExternalWine

logger = logging.getLogger(__name__)

VIVINO_BASE_URL = "https://www.vivino.com"

YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
PRICE_PATTERN = re.compile(r"([£$€¥])?([\d,]+\.?\d*)")
CURRENCY_SYMBOLS = {"£": "GBP", "€": "EUR", "¥": "JPY", "$": "USD"}

WHITE_KEYWORDS = ("chardonnay", "sauvignon blanc", "riesling", "pinot grigio", "white")
ROSE_KEYWORDS = ("rosé", "rose")
SPARKLING_KEYWORDS = ("champagne", "prosecco", "cava", "sparkling")

KNOWN_GRAPES = (
    "Cabernet Sauvignon", "Merlot", "Pinot Noir", "Chardonnay", "Sauvignon Blanc",
    "Riesling", "Pinot Grigio", "Syrah", "Shiraz", "Grenache", "Sangiovese",
    "Tempranillo", "Nebbiolo", "Barbera", "Chianti",
)


def extract_year(text: str) -> Optional[int]:
    """First 19xx/20xx token in the text."""
    match = YEAR_PATTERN.search(text)
    return int(match.group(0)) if match else None


def parse_price(price_text: str) -> Optional[tuple[float, str]]:
    """
    Parse '$24.99', '€1,200', '18.50' into (amount, currency).

    Missing or unknown symbols default to USD.
    """
    match = PRICE_PATTERN.search(price_text)
    if not match:
        return None
    try:
        amount = float(match.group(2).replace(",", ""))
    except ValueError:
        return None
    return amount, CURRENCY_SYMBOLS.get(match.group(1) or "$", "USD")


def parse_rating(rating_text: str) -> Optional[float]:
    """'4,2' and '4.2' both mean 4.2 stars."""
    if not rating_text:
        return None
    try:
        return float(rating_text.replace(",", "."))
    except ValueError:
        return None


def infer_color(name: str, region: str) -> str:
    text = f"{name} {region}".lower()
    if any(keyword in text for keyword in WHITE_KEYWORDS):
        return "White"
    if any(keyword in text for keyword in ROSE_KEYWORDS):
        return "Rosé"
    if any(keyword in text for keyword in SPARKLING_KEYWORDS):
        return "Sparkling"
    return "Red"


def infer_grapes(name: str, color: str) -> list[str]:
    """Grapes named in the wine name, else a blend placeholder for the color."""
    lowered = name.lower()
    grapes = [grape for grape in KNOWN_GRAPES if grape.lower() in lowered]
    if grapes:
        return grapes
    if color == "Red":
        return ["Red Blend"]
    if color == "White":
        return ["White Blend"]
    return ["Mixed"]


def _text(card, selector: str) -> str:
    element = card.select_one(selector)
    return element.get_text(" ", strip=True) if element else ""


def parse_search_results(
    html: str,
    limit: int = 10,
    region: Optional[str] = None,
    vintage: Optional[int] = None,
) -> list[ExternalWine]:
    """
    Extract up to `limit` wines from a Vivino search page.

    Args:
        html: Rendered page content
        limit: Max number of cards to read
        region: Region to assume when a card has none
        vintage: Vintage to assume when the name carries no year

    Returns:
        Raw ExternalWine records (source=vivino); cards without a name are skipped
    """
    soup = BeautifulSoup(html, "html.parser")
    results: list[ExternalWine] = []

    for card in soup.select(".wine-card")[:limit]:
        try:
            name = _text(card, ".wine-card__name a")
            if not name:
                continue

            vineyard = _text(card, ".wine-card__winery a") or "Unknown Winery"
            card_region = _text(card, ".wine-card__region") or region or "Unknown Region"

            price = None
            currency = "USD"
            price_text = _text(card, ".wine-price-value")
            if price_text:
                parsed = parse_price(price_text)
                if parsed:
                    price, currency = parsed

            color = infer_color(name, card_region)

            image = card.select_one(".wine-card__image img")
            image_url = (image.get("src") or image.get("data-src")) if image else None

            link = card.select_one(".wine-card__name a")
            href = link.get("href") if link else None
            url = f"{VIVINO_BASE_URL}{href}" if href and href.startswith("/") else href

            results.append(ExternalWine(
                name=name,
                vineyard=vineyard,
                region=card_region,
                color=color,
                grape_varieties=infer_grapes(name, color),
                vintage_year=extract_year(name) or vintage,
                rating=parse_rating(_text(card, ".average__number")),
                price=price,
                currency=currency,
                image_url=image_url,
                url=url,
                source=ExternalSource.VIVINO,
            ))
        except Exception as e:
            logger.warning(f"Error parsing wine card: {e}")

    return results
