from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

_PEPPER_FAMILY = (
    "capsicum",
    "capsaicin",
    "paprika",
    "chili",
    "chilli",
    "cayenne",
    "jalapeño",
    "pimento",
    "bell pepper",
    "red pepper",
    "green pepper",
    "capsicum extract",
    "pepper extract",
    "pepper oleoresin",
)

# Canonical allergen name -> ingredient substrings that may indicate hidden presence.
RELATED_INGREDIENTS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "Pepper": _PEPPER_FAMILY,
    "Peppers": _PEPPER_FAMILY,
    "Milk": ("dairy", "lactose", "whey", "casein", "butter", "cream", "cheese", "yogurt", "buttermilk", "curd"),
    "Dairy": ("milk", "lactose", "whey", "casein", "butter", "cream", "cheese", "yogurt", "buttermilk", "curd"),
    "Wheat": ("gluten", "flour", "bread", "pasta", "bulgur", "semolina", "couscous", "bran", "starch"),
    "Gluten": ("wheat", "barley", "rye", "malt", "oats", "beer", "spelt", "triticale", "kamut"),
})

_BY_FOLDED_NAME: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {name.casefold(): related for name, related in RELATED_INGREDIENTS.items()}
)

# (restriction substring, related-ingredient substring) pairs strong enough to
# make the product unsafe rather than merely worth a caution note.
ESCALATION_RULES: Tuple[Tuple[str, str], ...] = (
    ("pepper", "capsicum"),
)


def related_ingredients(allergen_name: str) -> Tuple[str, ...]:
    """
    Lookup of the whole allergen name; no partial matches.

    Case and surrounding whitespace are ignored on purpose, so "milk" and
    " Milk " both hit the "Milk" entry.
    """
    return _BY_FOLDED_NAME.get((allergen_name or "").strip().casefold(), ())


def escalates(allergen_name: str, related: str) -> bool:
    name = (allergen_name or "").lower()
    term = (related or "").lower()
    return any(a in name and b in term for a, b in ESCALATION_RULES)
