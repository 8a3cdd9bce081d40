"""
Food pairing suggestions for cellar wines.

Tier 1: Color lookup table (every wine has a color).
Tier 2: Grape lookup table (substring match on each variety).
"""

from typing import Iterable, Optional

COLOR_PAIRINGS: dict[str, list[str]] = {
    "red": ["Red meat", "Hard cheese", "Dark chocolate"],
    "white": ["Fish", "Poultry", "Soft cheese"],
    "rosé": ["Salmon", "Light pasta", "Fruit desserts"],
    "rose": ["Salmon", "Light pasta", "Fruit desserts"],
    "sparkling": ["Appetizers", "Seafood", "Celebration dishes"],
    "dessert": ["Desserts", "Blue cheese", "Foie gras"],
    "fortified": ["Nuts", "Dried fruits", "Strong cheese"],
}

GRAPE_PAIRINGS: dict[str, list[str]] = {
    "cabernet sauvignon": ["Grilled steak", "Lamb chops"],
    "pinot noir": ["Duck", "Mushroom risotto"],
    "chardonnay": ["Lobster", "Cream sauces"],
    "sauvignon blanc": ["Goat cheese", "Shellfish"],
}


class PairingService:
    """Food pairing lookup. Color first, then grape-specific additions."""

    def suggest(self, color: Optional[str], grape_varieties: Iterable[str] = ()) -> list[str]:
        """Return de-duplicated suggestions, color rules before grape rules."""
        suggestions: list[str] = []

        if color:
            color_name = getattr(color, "value", color)
            suggestions.extend(COLOR_PAIRINGS.get(color_name.lower(), []))

        for grape in grape_varieties:
            grape_lower = grape.lower()
            for key, foods in GRAPE_PAIRINGS.items():
                if key in grape_lower:
                    suggestions.extend(foods)

        # dict.fromkeys keeps first-seen order
        return list(dict.fromkeys(suggestions))
