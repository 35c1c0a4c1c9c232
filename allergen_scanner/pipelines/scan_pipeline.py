from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from allergen_scanner.config import settings
from allergen_scanner.errors import ServiceError, ServiceInvalidOutput, ServiceTimeout, ValidationError

from allergen_scanner.analyzers.analysis_base import Allergen, AnalysisResult
from allergen_scanner.analyzers.vlm_base import VLMInput
from allergen_scanner.analyzers.vlm_factory import create_vlm_analyzer
from allergen_scanner.analyzers.vlm_parsing import parse_analysis_reply
from allergen_scanner.analyzers.vlm_prompting import build_scan_prompt
from allergen_scanner.analyzers.vlm_runner import run_with_timeout

from allergen_scanner.preprocessing.image_payload import decode_image_payload
from allergen_scanner.refiners.verdict_refiner import VerdictState, refine_verdict

from allergen_scanner.observability.metrics import (
    SCAN_CAUTION_FINDINGS_TOTAL,
    SCAN_REQUESTS_TOTAL,
    SCAN_VERDICTS_TOTAL,
    VLM_INFERENCE_SECONDS,
    VLM_REQUESTS_TOTAL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanPipelineResult:
    """
    Final scan result plus metadata for logging/debugging.
    Only `result` is part of the client contract.
    """
    result: AnalysisResult
    state: VerdictState
    unclear_reason: Optional[str]
    model_name: str
    model_version: str
    duration_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return self.result.to_dict()


def _verdict_label(result: AnalysisResult) -> str:
    if result.is_safe is None:
        return "unclear"
    return "safe" if result.is_safe else "unsafe"


class ScanPipeline:
    """
    One scan, one sequential pass:
    validate image -> build prompt -> single VLM call -> parse -> refine verdict.

    No retries and no writes: ServiceError propagates to the caller unchanged,
    an unclear photo comes back as a normal result with is_safe=None.
    """

    def __init__(self, analyzer=None):
        self._vlm = analyzer if analyzer is not None else create_vlm_analyzer()

    @property
    def model_name(self) -> str:
        return getattr(self._vlm, "model_name", "unknown")

    async def run(
        self,
        image: Union[bytes, str, None],
        allergens: Sequence[Allergen],
        timeout_s: Optional[float] = None,
    ) -> ScanPipelineResult:
        try:
            payload = decode_image_payload(image, max_mb=settings.max_image_mb)
        except ValidationError:
            SCAN_REQUESTS_TOTAL.labels(result="invalid_request").inc()
            raise

        active: List[Allergen] = [a for a in allergens if a.selected]
        logger.info(
            "scan_start allergens=%d image_bytes=%d mime=%s",
            len(active),
            payload.size_bytes,
            payload.mime_type,
        )

        vlm_input = VLMInput(
            prompt=build_scan_prompt(active),
            image_b64=payload.b64,
            mime_type=payload.mime_type,
        )

        vlm_res, duration_s = await self._call_vlm(vlm_input, timeout_s)

        try:
            intermediate = parse_analysis_reply(vlm_res.raw_output or "")
        except ServiceInvalidOutput:
            VLM_REQUESTS_TOTAL.labels(result="invalid_output", model=self.model_name).inc()
            SCAN_REQUESTS_TOTAL.labels(result=ServiceInvalidOutput.code).inc()
            logger.warning("scan_invalid_output model=%s", self.model_name)
            raise

        refined = refine_verdict(intermediate, active)
        result = refined.result

        SCAN_REQUESTS_TOTAL.labels(result="ok").inc()
        SCAN_VERDICTS_TOTAL.labels(verdict=_verdict_label(result)).inc()
        if refined.added_findings:
            SCAN_CAUTION_FINDINGS_TOTAL.inc(len(refined.added_findings))

        logger.info(
            "scan_ok model=%s verdict=%s state=%s findings=%d added=%d duration_ms=%d",
            vlm_res.model_name,
            _verdict_label(result),
            refined.state.value,
            len(result.detected_allergens),
            len(refined.added_findings),
            int(duration_s * 1000),
        )

        return ScanPipelineResult(
            result=result,
            state=refined.state,
            unclear_reason=refined.reason,
            model_name=vlm_res.model_name,
            model_version=vlm_res.model_version,
            duration_ms=int(duration_s * 1000),
        )

    async def _call_vlm(self, vlm_input: VLMInput, timeout_s: Optional[float]):
        model_label = self.model_name

        try:
            vlm_res, duration_s = await run_with_timeout(self._vlm.analyze, vlm_input, timeout_s=timeout_s)
        except ServiceTimeout:
            VLM_REQUESTS_TOTAL.labels(result="timeout", model=model_label).inc()
            SCAN_REQUESTS_TOTAL.labels(result=ServiceTimeout.code).inc()
            logger.warning("scan_timeout model=%s", model_label)
            raise
        except ServiceError as e:
            VLM_REQUESTS_TOTAL.labels(result="failed", model=model_label).inc()
            SCAN_REQUESTS_TOTAL.labels(result=e.code).inc()
            logger.warning("scan_service_error model=%s code=%s error=%s", model_label, e.code, e)
            raise
        except Exception as e:
            # Unknown adapter failures become ServiceError so callers have one surface.
            VLM_REQUESTS_TOTAL.labels(result="failed", model=model_label).inc()
            SCAN_REQUESTS_TOTAL.labels(result=ServiceError.code).inc()
            logger.exception("scan_vlm_failed model=%s", model_label)
            raise ServiceError(f"{type(e).__name__}: {e}") from e

        VLM_REQUESTS_TOTAL.labels(result="ok", model=model_label).inc()
        VLM_INFERENCE_SECONDS.labels(model=model_label).observe(duration_s)
        return vlm_res, duration_s
