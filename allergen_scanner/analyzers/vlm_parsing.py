from __future__ import annotations

import json
import re
from typing import List, Optional

from pydantic import ValidationError

from allergen_scanner.analyzers.analysis_base import AnalysisResult, DetectedAllergen, Severity
from allergen_scanner.analyzers.vlm_schema import VLMFinding, VLMStructuredOutput
from allergen_scanner.errors import ServiceInvalidOutput

# Field fallbacks for an otherwise valid reply.
UNKNOWN_PRODUCT_NAME = "Unable to identify product"
INGREDIENTS_NOT_EXTRACTED = "Could not extract ingredients clearly"
NO_RECOMMENDATION = "No specific recommendation available."
NO_ALTERNATIVE = ""

_JSON_OBJ_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(text: str) -> Optional[str]:
    """
    Attempts to extract the first JSON object from a model output.
    """
    if not text:
        return None
    m = _JSON_OBJ_RE.search(text)
    return m.group(0) if m else None


def parse_structured_output(text: str) -> VLMStructuredOutput:
    if not text or not text.strip():
        raise ServiceInvalidOutput("Empty response from vision model")

    raw = extract_json_object(text)
    if raw is None:
        raise ServiceInvalidOutput("No JSON object found in model output")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ServiceInvalidOutput(f"Invalid JSON: {e}") from e

    try:
        return VLMStructuredOutput.model_validate(data)
    except ValidationError as e:
        raise ServiceInvalidOutput(f"JSON does not match schema: {e}") from e


def _dedupe_findings(findings: List[VLMFinding]) -> List[DetectedAllergen]:
    seen = set()
    out: List[DetectedAllergen] = []
    for f in findings:
        key = f.found.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(DetectedAllergen(name=f.name, found=f.found, severity=Severity(f.severity)))
    return out


def parse_analysis_reply(text: str) -> AnalysisResult:
    """
    Turn the model's raw reply into the intermediate AnalysisResult.

    Structural problems raise ServiceInvalidOutput. Missing fields inside a
    valid reply get fixed placeholders; a missing verdict counts as unsafe.
    """
    out = parse_structured_output(text)

    return AnalysisResult(
        product_name=out.product_name or UNKNOWN_PRODUCT_NAME,
        is_safe=bool(out.is_safe),
        detected_allergens=tuple(_dedupe_findings(out.detected_allergens or [])),
        ingredients=out.ingredients or INGREDIENTS_NOT_EXTRACTED,
        recommendation=out.recommendation or NO_RECOMMENDATION,
        alternative_suggestion=out.alternative_suggestion or NO_ALTERNATIVE,
    )
