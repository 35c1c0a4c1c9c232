from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "allergen-label-scanner"
    log_level: str = "INFO"

    # request limits
    max_image_mb: int = 10

    # VLM configuration
    vlm_provider: str = "mock"  # "mock" | "openai" | "transformers"
    vlm_timeout_seconds: float = 60.0
    vlm_max_tokens: int = 1000

    openai_model: str = "gpt-4o"
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None

    # local HF model, only used when vlm_provider == "transformers"
    vlm_model_id: str = "llava-hf/llava-1.5-7b-hf"


settings = Settings()
