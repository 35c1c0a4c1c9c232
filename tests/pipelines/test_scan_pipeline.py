import asyncio
import io
import json
import time

import pytest
from PIL import Image

from allergen_scanner.analyzers.analysis_base import Allergen, AllergenCategory
from allergen_scanner.analyzers.vlm_base import VLMResult
from allergen_scanner.analyzers.vlm_mock import MockVLMAnalyzer
from allergen_scanner.errors import ServiceError, ServiceInvalidOutput, ServiceTimeout, ValidationError
from allergen_scanner.pipelines.scan_pipeline import ScanPipeline
from allergen_scanner.refiners.verdict_refiner import RETAKE_RECOMMENDATION, VerdictState


def _make_png_bytes(w: int = 32, h: int = 32) -> bytes:
    img = Image.new("RGB", (w, h), color=(255, 255, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeVLM:
    """
    Deterministic fake analyzer: records inputs, returns a fixed reply or raises.
    """

    def __init__(self, *, reply=None, raw_output=None, exc=None, delay_s: float = 0.0):
        self.model_name = "fake-vlm"
        self.model_version = "test"
        self.calls = []
        self._raw = raw_output if raw_output is not None else (json.dumps(reply) if reply is not None else None)
        self._exc = exc
        self._delay_s = delay_s

    def analyze(self, vlm_input):
        self.calls.append(vlm_input)
        if self._delay_s:
            time.sleep(self._delay_s)
        if self._exc is not None:
            raise self._exc
        return VLMResult(raw_output=self._raw, model_name=self.model_name, model_version=self.model_version)


MILK = Allergen(id="1", name="Milk", category=AllergenCategory.COMMON, selected=True)
SESAME_OFF = Allergen(id="2", name="Sesame", category=AllergenCategory.COMMON, selected=False)

SAFE_REPLY = {
    "productName": "Vanilla Protein Shake",
    "isSafe": True,
    "detectedAllergens": [],
    "ingredients": "Filtered water, cane sugar, sodium caseinate, natural flavors, guar gum",
    "recommendation": "No listed allergens found.",
    "alternativeSuggestion": "",
}


def _run(pipeline: ScanPipeline, image=None, allergens=(MILK,), **kwargs):
    image = _make_png_bytes() if image is None else image
    return asyncio.run(pipeline.run(image, list(allergens), **kwargs))


def test_pipeline_happy_path_refines_model_reply():
    vlm = FakeVLM(reply=SAFE_REPLY)

    out = _run(ScanPipeline(analyzer=vlm))

    assert out.state is VerdictState.RESOLVED
    assert out.model_name == "fake-vlm"
    assert out.result.product_name == "Vanilla Protein Shake"
    assert [f.name for f in out.result.detected_allergens] == ["Milk"]
    assert out.to_dict()["detectedAllergens"][0]["severity"] == "caution"


def test_pipeline_sends_only_selected_allergens_and_image_mime():
    vlm = FakeVLM(reply=SAFE_REPLY)

    _run(ScanPipeline(analyzer=vlm), allergens=(MILK, SESAME_OFF))

    assert len(vlm.calls) == 1
    sent = vlm.calls[0]
    assert "Common Allergens: Milk" in sent.prompt
    assert "Sesame" not in sent.prompt
    assert sent.mime_type == "image/png"


def test_pipeline_without_selected_allergens_uses_default_safe_instruction():
    vlm = FakeVLM(reply=SAFE_REPLY)

    _run(ScanPipeline(analyzer=vlm), allergens=(SESAME_OFF,))

    assert "No specific allergens or restrictions provided" in vlm.calls[0].prompt


def test_invalid_image_is_rejected_before_model_call():
    vlm = FakeVLM(reply=SAFE_REPLY)

    with pytest.raises(ValidationError):
        _run(ScanPipeline(analyzer=vlm), image="")

    assert vlm.calls == []


def test_unclear_reply_is_a_result_not_an_error():
    reply = {**SAFE_REPLY, "ingredients": "Text is blurry and cannot be read"}

    out = _run(ScanPipeline(analyzer=FakeVLM(reply=reply)))

    assert out.state is VerdictState.UNCLEAR
    assert out.result.is_safe is None
    assert out.result.recommendation == RETAKE_RECOMMENDATION
    assert out.unclear_reason is not None


def test_service_error_propagates_unchanged():
    err = ServiceError("connection reset")

    with pytest.raises(ServiceError) as e:
        _run(ScanPipeline(analyzer=FakeVLM(exc=err)))

    assert e.value is err


def test_unknown_adapter_failure_becomes_service_error():
    with pytest.raises(ServiceError) as e:
        _run(ScanPipeline(analyzer=FakeVLM(exc=RuntimeError("boom"))))

    assert "boom" in str(e.value)


def test_non_json_reply_raises_invalid_output():
    with pytest.raises(ServiceInvalidOutput):
        _run(ScanPipeline(analyzer=FakeVLM(raw_output="I see a cereal box.")))


def test_empty_reply_raises_invalid_output():
    with pytest.raises(ServiceInvalidOutput):
        _run(ScanPipeline(analyzer=FakeVLM(raw_output="")))


def test_caller_timeout_raises_service_timeout():
    vlm = FakeVLM(reply=SAFE_REPLY, delay_s=1.0)

    with pytest.raises(ServiceTimeout):
        _run(ScanPipeline(analyzer=vlm), timeout_s=0.05)


def test_mock_analyzer_end_to_end():
    out = _run(ScanPipeline(analyzer=MockVLMAnalyzer()), allergens=())

    assert out.result.is_safe is True
    assert out.model_name == "mock-vlm"
