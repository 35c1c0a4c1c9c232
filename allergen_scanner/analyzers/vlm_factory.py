from __future__ import annotations

from allergen_scanner.config import settings
from allergen_scanner.analyzers.vlm_mock import MockVLMAnalyzer


def create_vlm_analyzer():
    """
    Factory for VLM analyzers.

    Provider SDKs are imported lazily so the app can start in mock mode
    without openai credentials or torch installed.
    """
    provider = (settings.vlm_provider or "mock").strip().lower()

    if provider == "mock":
        return MockVLMAnalyzer()

    if provider == "openai":
        from allergen_scanner.analyzers.vlm_openai import OpenAIVLMAnalyzer

        return OpenAIVLMAnalyzer(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout_s=settings.vlm_timeout_seconds,
            max_tokens=settings.vlm_max_tokens,
        )

    if provider == "transformers":
        from allergen_scanner.analyzers.vlm_transformers import TransformersVLMAnalyzer

        return TransformersVLMAnalyzer(
            model_id=settings.vlm_model_id,
            max_new_tokens=settings.vlm_max_tokens,
        )

    raise ValueError(f"Unsupported VLM provider: {provider}")
