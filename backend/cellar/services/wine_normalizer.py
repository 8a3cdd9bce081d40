"""
Normalization and deduplication for external wine search results.

Scraped and API records disagree on spelling ("napa" vs "Napa Valley,
California"), scale (Vivino 1-5 vs 100-point) and punctuation. This
module maps them onto the cellar's canonical forms and collapses
near-identical records using a weighted Jaro-Winkler similarity.
"""

import re
from datetime import datetime
from typing import Iterable, Optional

import jellyfish

from cellar.config import Config
from cellar.models import ExternalSource, ExternalWine

REGION_MAPPING: dict[str, str] = {
    # Napa Valley
    "napa": "Napa Valley, California",
    "napa valley": "Napa Valley, California",
    "napa valley, ca": "Napa Valley, California",
    "napa, california": "Napa Valley, California",
    # Sonoma
    "sonoma": "Sonoma County, California",
    "sonoma county": "Sonoma County, California",
    "sonoma, ca": "Sonoma County, California",
    # France
    "bordeaux": "Bordeaux, France",
    "bordelais": "Bordeaux, France",
    "burgundy": "Burgundy, France",
    "bourgogne": "Burgundy, France",
    "champagne": "Champagne, France",
    # Italy
    "tuscany": "Tuscany, Italy",
    "toscana": "Tuscany, Italy",
    "chianti": "Chianti, Tuscany, Italy",
    "piedmont": "Piedmont, Italy",
    "piemonte": "Piedmont, Italy",
    # Spain
    "rioja": "Rioja, Spain",
    "la rioja": "Rioja, Spain",
    # Germany
    "mosel": "Mosel, Germany",
    "rheingau": "Rheingau, Germany",
    "pfalz": "Pfalz, Germany",
    # Australia
    "barossa": "Barossa Valley, Australia",
    "barossa valley": "Barossa Valley, Australia",
    "hunter valley": "Hunter Valley, Australia",
    "clare valley": "Clare Valley, Australia",
    "coonawarra": "Coonawarra, Australia",
    # Chile
    "maipo": "Maipo Valley, Chile",
    "maipo valley": "Maipo Valley, Chile",
    "colchagua": "Colchagua Valley, Chile",
    "casablanca": "Casablanca Valley, Chile",
    # Argentina
    "mendoza": "Mendoza, Argentina",
    "salta": "Salta, Argentina",
    # South Africa
    "stellenbosch": "Stellenbosch, South Africa",
    "paarl": "Paarl, South Africa",
    # Canada
    "okanagan": "Okanagan Valley, British Columbia",
    "okanagan valley": "Okanagan Valley, British Columbia",
    "niagara": "Niagara Peninsula, Ontario",
    "niagara peninsula": "Niagara Peninsula, Ontario",
}

GRAPE_VARIETY_MAPPING: dict[str, str] = {
    # Red
    "cabernet sauvignon": "Cabernet Sauvignon",
    "cab sauv": "Cabernet Sauvignon",
    "cabernet": "Cabernet Sauvignon",
    "merlot": "Merlot",
    "pinot noir": "Pinot Noir",
    "pinot": "Pinot Noir",
    "syrah": "Syrah",
    "shiraz": "Syrah",  # same grape
    "grenache": "Grenache",
    "sangiovese": "Sangiovese",
    "tempranillo": "Tempranillo",
    "nebbiolo": "Nebbiolo",
    "barbera": "Barbera",
    "malbec": "Malbec",
    "petit verdot": "Petit Verdot",
    "cabernet franc": "Cabernet Franc",
    "carmenere": "Carménère",
    "carmenère": "Carménère",
    "zinfandel": "Zinfandel",
    "primitivo": "Zinfandel",  # same grape
    "gamay": "Gamay",
    "mourvèdre": "Mourvèdre",
    "mourvedre": "Mourvèdre",
    # White
    "chardonnay": "Chardonnay",
    "sauvignon blanc": "Sauvignon Blanc",
    "sauv blanc": "Sauvignon Blanc",
    "riesling": "Riesling",
    "pinot grigio": "Pinot Grigio",
    "pinot gris": "Pinot Gris",
    "gewürztraminer": "Gewürztraminer",
    "gewurztraminer": "Gewürztraminer",
    "viognier": "Viognier",
    "chenin blanc": "Chenin Blanc",
    "semillon": "Sémillon",
    "sémillon": "Sémillon",
    "albariño": "Albariño",
    "albarino": "Albariño",
    "verdejo": "Verdejo",
    "grüner veltliner": "Grüner Veltliner",
    "gruner veltliner": "Grüner Veltliner",
    "moscato": "Moscato",
    "muscat": "Muscat",
    "torrontés": "Torrontés",
    "torrontes": "Torrontés",
}

# Checked in this order; first hit wins
COLOR_INDICATORS: list[tuple[str, list[str]]] = [
    ("Sparkling", [
        "champagne", "prosecco", "cava", "crémant", "sparkling", "spumante",
        "sekt", "espumoso", "mousseux",
    ]),
    ("Rosé", ["rosé", "rose", "rosado", "rosato", "pink"]),
    ("White", [
        "chardonnay", "sauvignon blanc", "riesling", "pinot grigio", "pinot gris",
        "gewürztraminer", "viognier", "chenin blanc", "semillon", "albariño",
        "white wine", "blanc", "bianco", "blanco",
    ]),
    ("Red", [
        "cabernet", "merlot", "pinot noir", "syrah", "shiraz", "grenache",
        "sangiovese", "tempranillo", "nebbiolo", "barbera", "malbec",
        "zinfandel", "primitivo", "red wine", "rouge", "rosso", "tinto",
    ]),
]

WEIGHT_NAME = 0.4
WEIGHT_VINEYARD = 0.3
WEIGHT_VINTAGE = 0.2
WEIGHT_REGION = 0.1

MIN_VINTAGE_YEAR = 1800
MIN_PRICE = 1
MAX_PRICE = 10000
# Reverse containment ("napa valley" contains "napa") needs a real word
MIN_PARTIAL_KEY_LENGTH = 4

WINERY_SUFFIX_PATTERN = re.compile(
    r"\b(winery|wines|vineyard|estate|cellars?|domaine|château|chateau)\b$",
    re.IGNORECASE,
)
WHITESPACE_PATTERN = re.compile(r"\s+")
DOUBLE_QUOTES_PATTERN = re.compile(r"[“”„«»]")
SINGLE_QUOTES_PATTERN = re.compile(r"[‘’‚]")


def _clean_text(text: str) -> str:
    """Collapse whitespace and straighten typographic quotes."""
    text = WHITESPACE_PATTERN.sub(" ", text.strip())
    text = DOUBLE_QUOTES_PATTERN.sub('"', text)
    return SINGLE_QUOTES_PATTERN.sub("'", text)


def _lookup_alias(cleaned: str, mapping: dict[str, str]) -> Optional[str]:
    """Exact alias, then the longest alias contained in (or containing) the text."""
    if cleaned in mapping:
        return mapping[cleaned]
    for key in sorted(mapping, key=len, reverse=True):
        if key in cleaned:
            return mapping[key]
    if len(cleaned) >= MIN_PARTIAL_KEY_LENGTH:
        for key in sorted(mapping, key=len):
            if cleaned in key:
                return mapping[key]
    return None


class WineDataNormalizer:
    """
    Field normalizer and duplicate detector for ExternalWine records.

    All methods are pure; one shared instance is fine.
    """

    def __init__(self, duplicate_threshold: float = Config.DUPLICATE_THRESHOLD):
        self.duplicate_threshold = duplicate_threshold

    # === Field normalization ===

    def normalize_region(self, region: Optional[str]) -> str:
        if not region or not region.strip():
            return "Unknown Region"
        cleaned = region.lower().strip()

        mapped = _lookup_alias(cleaned, REGION_MAPPING)
        if mapped:
            return mapped

        return ", ".join(part.strip().capitalize() for part in region.split(","))

    def normalize_grape_varieties(self, varieties: Iterable[str]) -> list[str]:
        normalized = []
        for variety in varieties or []:
            if not variety or not variety.strip():
                continue
            cleaned = variety.lower().strip()
            mapped = _lookup_alias(cleaned, GRAPE_VARIETY_MAPPING)
            if mapped is None:
                mapped = " ".join(word.capitalize() for word in variety.split())
            normalized.append(mapped)
        return list(dict.fromkeys(normalized))

    def determine_color(self, wine: ExternalWine) -> str:
        """Infer color from name, grapes and description; keep the record's own color otherwise."""
        search_text = " ".join([
            wine.name or "",
            " ".join(wine.grape_varieties),
            wine.description or "",
        ]).lower()

        for color, indicators in COLOR_INDICATORS:
            if any(indicator in search_text for indicator in indicators):
                return color

        return wine.color or "Red"

    def normalize_name(self, name: Optional[str]) -> str:
        if not name:
            return ""
        return _clean_text(name)

    def normalize_vineyard(self, vineyard: Optional[str]) -> str:
        if not vineyard or not vineyard.strip():
            return "Unknown Winery"
        cleaned = WHITESPACE_PATTERN.sub(" ", vineyard.strip())
        stripped = WINERY_SUFFIX_PATTERN.sub("", cleaned).strip()
        # "Domaine" alone is still a name
        return _clean_text(stripped or cleaned)

    def normalize_vintage(self, vintage: Optional[int]) -> Optional[int]:
        if not vintage:
            return None
        if vintage < MIN_VINTAGE_YEAR or vintage > datetime.now().year:
            return None
        return vintage

    def normalize_price(self, price: Optional[float]) -> Optional[float]:
        if not price or price < MIN_PRICE or price > MAX_PRICE:
            return None
        return round(price, 2)

    def normalize_rating(self, rating: Optional[float], source: Optional[str] = None) -> Optional[int]:
        """
        Convert a rating to the 100-point scale.

        vivino: 1-5 stars, x20
        wine_api: already 100-point
        anything else: 1-5 is treated as stars, up to 100 as points
        """
        if not rating:
            return None
        source = getattr(source, "value", source)

        if source == ExternalSource.VIVINO.value:
            if 1 <= rating <= 5:
                return round(rating * 20)
            return None

        if source == ExternalSource.WINE_API.value:
            if 1 <= rating <= 100:
                return round(rating)
            return None

        if 1 <= rating <= 5:
            return round(rating * 20)
        if 1 <= rating <= 100:
            return round(rating)
        return None

    def normalize_description(self, description: Optional[str]) -> Optional[str]:
        if not description or not description.strip():
            return None
        return _clean_text(description)[:Config.MAX_DESCRIPTION_LENGTH]

    def normalize(self, wine: ExternalWine) -> ExternalWine:
        """Return a copy of `wine` with every field normalized."""
        return wine.model_copy(update={
            "name": self.normalize_name(wine.name),
            "vineyard": self.normalize_vineyard(wine.vineyard),
            "region": self.normalize_region(wine.region),
            "color": self.determine_color(wine),
            "grape_varieties": self.normalize_grape_varieties(wine.grape_varieties),
            "vintage_year": self.normalize_vintage(wine.vintage_year),
            "rating": self.normalize_rating(wine.rating, wine.source),
            "description": self.normalize_description(wine.description),
            "price": self.normalize_price(wine.price),
            "currency": (wine.currency or "USD").upper(),
            "food_pairings": [p.strip() for p in wine.food_pairings if p and p.strip()],
        })

    # === Deduplication ===

    def string_similarity(self, first: Optional[str], second: Optional[str]) -> float:
        """Case-insensitive Jaro-Winkler similarity, 0 when either side is empty."""
        if not first or not second:
            return 0.0
        s1 = first.lower().strip()
        s2 = second.lower().strip()
        if not s1 or not s2:
            return 0.0
        if s1 == s2:
            return 1.0
        return jellyfish.jaro_winkler_similarity(s1, s2)

    def calculate_similarity(self, first: ExternalWine, second: ExternalWine) -> float:
        """
        Weighted similarity in [0, 1].

        Vintage only counts when both records carry one, and the score is
        divided by the weights actually used.
        """
        score = self.string_similarity(first.name, second.name) * WEIGHT_NAME
        factors = WEIGHT_NAME

        score += self.string_similarity(first.vineyard, second.vineyard) * WEIGHT_VINEYARD
        factors += WEIGHT_VINEYARD

        if first.vintage_year and second.vintage_year:
            score += (1.0 if first.vintage_year == second.vintage_year else 0.0) * WEIGHT_VINTAGE
            factors += WEIGHT_VINTAGE

        score += self.string_similarity(first.region, second.region) * WEIGHT_REGION
        factors += WEIGHT_REGION

        return score / factors

    def is_duplicate(self, first: ExternalWine, second: ExternalWine) -> bool:
        return self.calculate_similarity(first, second) > self.duplicate_threshold

    def remove_duplicates(self, wines: Iterable[ExternalWine]) -> list[ExternalWine]:
        """Keep the first of each group of near-identical records, preserving order."""
        unique: list[ExternalWine] = []
        for wine in wines:
            if not any(self.is_duplicate(wine, kept) for kept in unique):
                unique.append(wine)
        return unique
