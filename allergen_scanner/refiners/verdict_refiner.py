from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from allergen_scanner.analyzers.analysis_base import (
    Allergen,
    AnalysisResult,
    DetectedAllergen,
    Severity,
)
from allergen_scanner.refiners.cross_reactivity import escalates, related_ingredients
from allergen_scanner.refiners.unclear_rules import find_unclear_reason

logger = logging.getLogger(__name__)

RETAKE_INGREDIENTS = (
    "Could not clearly identify all ingredients. "
    "Please take a clearer picture of the ingredients list."
)
RETAKE_RECOMMENDATION = (
    "Please retake a clearer photo of the ingredients list. "
    "For best results, ensure good lighting and focus directly on the text."
)
RETAKE_ALTERNATIVE = "Try holding the camera closer to the ingredients list and ensure good lighting."


class VerdictState(str, Enum):
    UNCLEAR = "unclear"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class RefinedVerdict:
    result: AnalysisResult
    state: VerdictState
    reason: Optional[str] = None  # which unclear rule fired
    added_findings: Tuple[DetectedAllergen, ...] = ()


def _caution_prefix(names: Sequence[str]) -> str:
    return (
        f"This product may contain ingredients related to your allergens ({', '.join(names)}). "
        "While these might not be direct matches, we recommend caution. "
    )


def _as_unclear(result: AnalysisResult) -> AnalysisResult:
    return replace(
        result,
        is_safe=None,
        detected_allergens=(),
        ingredients=RETAKE_INGREDIENTS,
        recommendation=RETAKE_RECOMMENDATION,
        alternative_suggestion=RETAKE_ALTERNATIVE,
    )


RELATED_MARKER = " (may be related to "


def _ingredient_text(finding: DetectedAllergen) -> str:
    # drop the "(may be related to X)" tail of an earlier caution finding
    return finding.found.split(RELATED_MARKER, 1)[0].lower()


def _is_covered(term: str, findings: Sequence[DetectedAllergen]) -> bool:
    return any(term in _ingredient_text(f) for f in findings)


def _enrich(result: AnalysisResult, allergens: Sequence[Allergen]) -> Tuple[AnalysisResult, List[DetectedAllergen]]:
    ingredients = (result.ingredients or "").lower()
    findings: List[DetectedAllergen] = list(result.detected_allergens)
    added: List[DetectedAllergen] = []
    is_safe = result.is_safe

    for allergen in allergens:
        for related in related_ingredients(allergen.name):
            term = related.lower()
            if term not in ingredients or _is_covered(term, findings):
                continue

            finding = DetectedAllergen(
                name=allergen.name,
                found=f"{related}{RELATED_MARKER}{allergen.name})",
                severity=Severity.CAUTION,
            )
            findings.append(finding)
            added.append(finding)

            if escalates(allergen.name, related):
                is_safe = False

    if not added:
        return result, added

    names: List[str] = []
    for f in added:
        if f.name not in names:
            names.append(f.name)

    enriched = replace(
        result,
        is_safe=is_safe,
        detected_allergens=tuple(findings),
        recommendation=_caution_prefix(names) + (result.recommendation or ""),
    )
    return enriched, added


def refine_verdict(result: AnalysisResult, allergens: Sequence[Allergen]) -> RefinedVerdict:
    """
    Decide between the two terminal states of a scan.

    Unclear: the model's read of the label is not trustworthy; the verdict
    becomes indeterminate (None) and every text field is replaced with retake
    guidance.

    Resolved: the model's verdict stands, strengthened by the cross-reactivity
    table. Related ingredients found in the transcript and not already named by
    a finding are appended as caution findings. Findings produced by an earlier
    refinement are recognised, so refining a refined result changes nothing.

    Pure and total: never raises.
    """
    reason = find_unclear_reason(result)
    if reason is not None:
        logger.info("verdict_unclear reason=%s", reason)
        return RefinedVerdict(result=_as_unclear(result), state=VerdictState.UNCLEAR, reason=reason)

    enriched, added = _enrich(result, allergens)
    if added:
        logger.info(
            "verdict_enriched added=%d escalated=%s",
            len(added),
            result.is_safe is not False and enriched.is_safe is False,
        )
    return RefinedVerdict(result=enriched, state=VerdictState.RESOLVED, added_findings=tuple(added))
