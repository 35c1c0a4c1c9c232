from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import List, Tuple

from allergen_scanner.analyzers.analysis_base import Allergen, AllergenCategory


@dataclass(frozen=True)
class AllergenGroup:
    category: AllergenCategory
    title: str
    allergens: List[Allergen]


# Category labels shared by the prompt and the onboarding catalog.
CATEGORY_TITLES = {
    AllergenCategory.COMMON: "Common Allergens",
    AllergenCategory.DIETARY: "Dietary Restrictions",
    AllergenCategory.RELIGIOUS: "Religious/Ethical Restrictions",
    AllergenCategory.CUSTOM: "Custom Restrictions",
}

_DEFAULT_NAMES: Tuple[Tuple[AllergenCategory, Tuple[str, ...]], ...] = (
    (
        AllergenCategory.COMMON,
        ("Peanuts", "Tree Nuts", "Milk", "Eggs", "Fish", "Shellfish", "Wheat", "Soy", "Sesame"),
    ),
    (
        AllergenCategory.DIETARY,
        (
            "Lactose Intolerance",
            "Gluten Sensitivity/Celiac Disease",
            "Caffeine Sensitivity",
            "Histamine Sensitivity",
        ),
    ),
    (
        AllergenCategory.RELIGIOUS,
        ("No Pork", "No Beef", "No Animal Products (Vegan)", "No Alcohol"),
    ),
    (AllergenCategory.CUSTOM, ()),
)


def default_allergen_groups() -> List[AllergenGroup]:
    """
    Starting catalog offered during onboarding, all unselected.

    Ids are generated per call; the client keeps whatever it persists.
    """
    return [
        AllergenGroup(
            category=category,
            title=CATEGORY_TITLES[category],
            allergens=[
                Allergen(id=str(uuid.uuid4()), name=name, category=category, selected=False)
                for name in names
            ],
        )
        for category, names in _DEFAULT_NAMES
    ]
