from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from allergen_scanner.analyzers.analysis_base import AnalysisResult
from allergen_scanner.analyzers.vlm_parsing import INGREDIENTS_NOT_EXTRACTED

MIN_INGREDIENTS_CHARS = 15
# A "safe, nothing found" claim needs at least this much transcript behind it.
MIN_SAFE_CLAIM_INGREDIENTS_CHARS = 50

# Phrases the model uses when it struggled to read the label, per field.
MARKER_PHRASES: Tuple[Tuple[str, str], ...] = (
    ("ingredients", "cannot"),
    ("ingredients", "unclear"),
    ("ingredients", "not visible"),
    ("ingredients", "poor quality"),
    ("ingredients", "poor image"),
    ("ingredients", "illegible"),
    ("ingredients", "blurry"),
    ("ingredients", "can't see"),
    ("ingredients", "can't read"),
    ("ingredients", "unable to read"),
    ("ingredients", "not able to"),
    ("ingredients", "partial list"),
    ("ingredients", "incomplete list"),
    ("product_name", "unknown"),
    ("recommendation", "retake"),
    ("recommendation", "clearer"),
    ("recommendation", "better photo"),
    ("recommendation", "better picture"),
    ("recommendation", "better image"),
    ("recommendation", "unclear"),
)


@dataclass(frozen=True)
class UnclearRule:
    reason: str
    check: Callable[[AnalysisResult], bool]


def _normalize(text: Optional[str]) -> str:
    return (text or "").replace("’", "'").lower()


def _contains(field_name: str, phrase: str) -> Callable[[AnalysisResult], bool]:
    return lambda r: phrase in _normalize(getattr(r, field_name))


def _ingredients_empty(r: AnalysisResult) -> bool:
    return not (r.ingredients or "").strip()


def _ingredients_too_short(r: AnalysisResult) -> bool:
    return len(r.ingredients or "") < MIN_INGREDIENTS_CHARS


def _ingredients_placeholder(r: AnalysisResult) -> bool:
    return r.ingredients == INGREDIENTS_NOT_EXTRACTED


def _implausible_safe_claim(r: AnalysisResult) -> bool:
    return (
        r.is_safe is True
        and not r.detected_allergens
        and len(r.ingredients or "") < MIN_SAFE_CLAIM_INGREDIENTS_CHARS
    )


UNCLEAR_RULES: Tuple[UnclearRule, ...] = (
    *(
        UnclearRule(reason=f"{field_name}_mentions:{phrase}", check=_contains(field_name, phrase))
        for field_name, phrase in MARKER_PHRASES
    ),
    UnclearRule(reason="ingredients_empty", check=_ingredients_empty),
    UnclearRule(reason="ingredients_too_short", check=_ingredients_too_short),
    UnclearRule(reason="ingredients_not_extracted", check=_ingredients_placeholder),
    UnclearRule(reason="safe_claim_with_short_ingredients", check=_implausible_safe_claim),
)


def find_unclear_reason(result: AnalysisResult) -> Optional[str]:
    """Return the reason of the first matching rule, or None when the read looks trustworthy."""
    for rule in UNCLEAR_RULES:
        if rule.check(result):
            return rule.reason
    return None
