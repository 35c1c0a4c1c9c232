from __future__ import annotations

import json
from typing import Any, Dict, Optional

from allergen_scanner.analyzers.vlm_base import VLMImageAnalyzer, VLMInput, VLMResult

_DEFAULT_REPLY: Dict[str, Any] = {
    "productName": "Mock Oat Crackers",
    "isSafe": True,
    "detectedAllergens": [],
    "ingredients": (
        "Whole grain oats, sunflower oil, sea salt, rosemary extract, "
        "baking soda, cane sugar"
    ),
    "recommendation": "Mock VLM output (dev mode). Enable a real VLM provider for label analysis.",
    "alternativeSuggestion": "",
}


class MockVLMAnalyzer(VLMImageAnalyzer):
    """
    Returns a fixed JSON reply without looking at the image. For dev/testing only.
    """

    def __init__(self, reply: Optional[Dict[str, Any]] = None):
        self.model_name = "mock-vlm"
        self.model_version = "0.1"
        self._reply = dict(reply) if reply is not None else dict(_DEFAULT_REPLY)

    def analyze(self, vlm_input: VLMInput) -> VLMResult:
        return VLMResult(
            raw_output=json.dumps(self._reply),
            model_name=self.model_name,
            model_version=self.model_version,
        )
