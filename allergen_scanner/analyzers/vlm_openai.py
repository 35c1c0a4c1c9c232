from __future__ import annotations

from typing import Optional

import openai
from openai import OpenAI

from allergen_scanner.analyzers.vlm_base import VLMImageAnalyzer, VLMInput, VLMResult
from allergen_scanner.errors import ServiceError, ServiceInvalidOutput, ServiceTimeout


class OpenAIVLMAnalyzer(VLMImageAnalyzer):
    """
    Vision analyzer backed by the OpenAI chat completions API.

    Sends exactly one request per analyze() call; SDK retries are disabled so
    retry policy stays with the caller.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_tokens: int = 1000,
        client: Optional[OpenAI] = None,
    ):
        self.model_name = model
        self.model_version = "openai"
        self.max_tokens = max_tokens
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_s,
            max_retries=0,
        )

    def analyze(self, vlm_input: VLMInput) -> VLMResult:
        data_url = f"data:{vlm_input.mime_type};base64,{vlm_input.image_b64}"

        try:
            response = self._client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": vlm_input.prompt},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
                response_format={"type": "json_object"},
                max_tokens=self.max_tokens,
            )
        except openai.APITimeoutError as e:
            raise ServiceTimeout(f"OpenAI request timed out: {e}") from e
        except openai.OpenAIError as e:
            raise ServiceError(f"OpenAI request failed: {type(e).__name__}: {e}") from e

        if not response.choices:
            raise ServiceInvalidOutput("OpenAI returned no choices")

        content = response.choices[0].message.content
        if not content:
            raise ServiceInvalidOutput("Empty response from OpenAI")

        return VLMResult(
            raw_output=content,
            model_name=getattr(response, "model", None) or self.model_name,
            model_version=self.model_version,
        )
