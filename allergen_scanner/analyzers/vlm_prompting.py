from __future__ import annotations

from typing import List, Sequence

from allergen_scanner.analyzers.allergen_catalog import CATEGORY_TITLES
from allergen_scanner.analyzers.analysis_base import Allergen, AllergenCategory

# Fixed rendering order of the category lines.
CATEGORY_ORDER = (
    AllergenCategory.COMMON,
    AllergenCategory.DIETARY,
    AllergenCategory.RELIGIOUS,
    AllergenCategory.CUSTOM,
)

NO_RESTRICTIONS_INSTRUCTION = (
    "No specific allergens or restrictions provided. In this case, the product should be "
    "considered SAFE by default unless there are clear warnings about common allergens."
)

ALLERGENS_PLACEHOLDER = "{{allergens}}"

PROMPT_TEMPLATE = """
You are an AI assistant specialized in analyzing food ingredients for allergens and dietary restrictions.
A user has sent you an image of food packaging with ingredients list.

Analyze the ingredients list in the image and check if it contains any of the user's allergens or restrictions listed below:

USER'S ALLERGENS AND RESTRICTIONS:
{{allergens}}

TASK:
1. Extract the product name from the package if visible
2. Identify ALL ingredients shown in the list
3. Check if ANY of the user's allergens or restrictions are present in the ingredients
4. Check for indirect/cross-reactive ingredients (e.g., casein contains milk protein)
5. Determine if the product is safe for the user based on their restrictions

Your response must follow this JSON format strictly:
{
  "productName": "Name of food product",
  "isSafe": true or false,
  "detectedAllergens": [
    {
      "name": "allergen name",
      "found": "exact ingredient text from list",
      "severity": "unsafe" or "caution"
    }
  ],
  "ingredients": "Full ingredients list from the package",
  "recommendation": "Short explanation whether user should avoid or can consume this product",
  "alternativeSuggestion": "Suggestion for allergen-free alternatives if available"
}

Note:
- "severity": "unsafe" means the allergen is definitely present
- "severity": "caution" means possible cross-contamination or similar allergens
- Keep the response concise and focused solely on allergen identification
- If you can't clearly see the ingredients or the image quality is poor, note that in the recommendation field
""".strip()


def render_allergen_block(allergens: Sequence[Allergen]) -> str:
    """
    Render the user's restrictions as one labeled line per non-empty category,
    in CATEGORY_ORDER. Callers pass only selected allergens; nothing is filtered here.
    """
    lines: List[str] = []
    for category in CATEGORY_ORDER:
        names = [a.name for a in allergens if a.category == category]
        if names:
            lines.append(f"{CATEGORY_TITLES[category]}: {', '.join(names)}")

    if not lines:
        return NO_RESTRICTIONS_INSTRUCTION
    return "\n".join(lines)


def build_scan_prompt(allergens: Sequence[Allergen]) -> str:
    return PROMPT_TEMPLATE.replace(ALLERGENS_PLACEHOLDER, render_allergen_block(allergens))
