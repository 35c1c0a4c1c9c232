from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class AllergenCategory(str, Enum):
    COMMON = "common"
    DIETARY = "dietary"
    RELIGIOUS = "religious"
    CUSTOM = "custom"


class Severity(str, Enum):
    UNSAFE = "unsafe"    # allergen explicitly present
    CAUTION = "caution"  # inferred or cross-reactive presence


@dataclass(frozen=True)
class Allergen:
    """
    A user-declared restriction.

    Owned by the client (onboarding/settings). The scan core only reads the
    subset with selected=True.
    """
    id: str
    name: str
    category: AllergenCategory
    selected: bool = True


@dataclass(frozen=True)
class DetectedAllergen:
    name: str
    found: str  # ingredient text that triggered the match
    severity: Severity

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "found": self.found, "severity": self.severity.value}


@dataclass(frozen=True)
class AnalysisResult:
    """
    Shared shape of the intermediate (parsed model reply) and final scan result.

    is_safe:
    - True / False once a verdict is resolved
    - None when the photo was too unclear to trust (indeterminate)
    """
    product_name: str
    is_safe: Optional[bool]
    ingredients: str
    recommendation: str
    alternative_suggestion: str = ""
    detected_allergens: Tuple[DetectedAllergen, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productName": self.product_name,
            "isSafe": self.is_safe,
            "detectedAllergens": [d.to_dict() for d in self.detected_allergens],
            "ingredients": self.ingredients,
            "recommendation": self.recommendation,
            "alternativeSuggestion": self.alternative_suggestion,
        }
