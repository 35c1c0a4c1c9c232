from __future__ import annotations

import base64
import io

import torch
from PIL import Image
from transformers import AutoConfig, AutoProcessor

from allergen_scanner.analyzers.vlm_base import VLMImageAnalyzer, VLMInput, VLMResult
from allergen_scanner.errors import ServiceError, ServiceInvalidOutput


def _load_vlm_model(model_id: str):
    """
    Load a VLM model in a way that works across transformers versions.

    Priority:
    1) AutoModelForVision2Seq
    2) LlavaForConditionalGeneration
    """
    cfg = AutoConfig.from_pretrained(model_id)

    try:
        from transformers import AutoModelForVision2Seq
        return AutoModelForVision2Seq.from_pretrained(model_id)
    except Exception:
        pass

    if cfg.__class__.__name__.lower().startswith("llavaconfig"):
        try:
            from transformers import LlavaForConditionalGeneration
            return LlavaForConditionalGeneration.from_pretrained(model_id)
        except Exception as e:
            raise RuntimeError(
                "Your transformers installation cannot load LLaVA. "
                "Try upgrading: pip install -U 'transformers>=4.45' 'accelerate>=0.33'"
            ) from e

    raise RuntimeError(
        f"Cannot load model '{model_id}' with your current transformers version. "
        "Please upgrade transformers or choose a supported model."
    )


class TransformersVLMAnalyzer(VLMImageAnalyzer):
    """
    Local label reader using a HuggingFace vision-language model.

    The model is prompted with the same JSON contract as the hosted provider;
    small local models often break it, which surfaces as ServiceInvalidOutput
    during parsing.
    """

    def __init__(self, model_id: str, device: str | None = None, max_new_tokens: int = 1000):
        self.model_id = model_id
        self.device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        self.max_new_tokens = max_new_tokens

        self.processor = AutoProcessor.from_pretrained(model_id)
        self.model = _load_vlm_model(model_id)

        self.model.to(self.device)
        self.model.eval()

        self.model_name = model_id
        self.model_version = "hf"

    @torch.no_grad()
    def analyze(self, vlm_input: VLMInput) -> VLMResult:
        try:
            image = Image.open(io.BytesIO(base64.b64decode(vlm_input.image_b64))).convert("RGB")
        except Exception as e:
            raise ServiceError(f"Could not decode image for local model: {e}") from e

        inputs = self.processor(images=image, text=vlm_input.prompt, return_tensors="pt")
        inputs = {k: v.to(self.device) for k, v in inputs.items()}

        try:
            output_ids = self.model.generate(**inputs, max_new_tokens=self.max_new_tokens)
            text = self.processor.batch_decode(output_ids, skip_special_tokens=True)[0].strip()
        except Exception as e:
            raise ServiceError(f"VLM generation failed: {e}") from e

        if not text:
            raise ServiceInvalidOutput("Empty VLM output")

        return VLMResult(raw_output=text, model_name=self.model_name, model_version=self.model_version)
