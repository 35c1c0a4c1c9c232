from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class VLMInput:
    prompt: str
    image_b64: str
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class VLMResult:
    raw_output: Optional[str]
    model_name: str
    model_version: str


class VLMImageAnalyzer(Protocol):
    """
    One request per call: image + prompt in, raw model text out.
    Implementations raise ServiceError (or a subclass) on transport failure.
    """
    model_name: str
    model_version: str

    def analyze(self, vlm_input: VLMInput) -> VLMResult:
        ...
