import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_access_key: str | None = Field(None, alias="API_ACCESS_KEY")
    notion_api_key: str | None = Field(None, alias="NOTION_API_KEY")
    notion_database_id: str | None = Field(None, alias="NOTION_DATABASE_ID")
    notion_base_url: str = Field("https://api.notion.com/v1", alias="NOTION_BASE_URL")
    notion_version: str = Field("2022-06-28", alias="NOTION_VERSION")
    notion_timeout_seconds: float = Field(30.0, alias="NOTION_TIMEOUT_SECONDS")
    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    openai_base_url: str = Field("https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    llm_model_name: str = Field("gpt-4.1-nano", alias="LLM_MODEL_NAME")
    llm_timeout_seconds: float = Field(60.0, alias="LLM_TIMEOUT_SECONDS")
    llm_text_max_chars: int = Field(12000, alias="LLM_TEXT_MAX_CHARS")
    # Pixel budget for vision input; larger screenshots are downscaled.
    llm_image_max_pixels: int = Field(1280 * 28 * 28, alias="LLM_IMAGE_MAX_PIXELS")
    browserless_endpoint: str = Field(
        "https://production-sfo.browserless.io/chromium/bql",
        alias="BROWSERLESS_ENDPOINT",
    )
    browserless_token: str | None = Field(None, alias="BROWSERLESS_TOKEN")
    extraction_timeout_seconds: float = Field(45.0, alias="EXTRACTION_TIMEOUT_SECONDS")
    image_max_bytes: int = Field(10 * 1024 * 1024, alias="IMAGE_MAX_BYTES")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    if not settings.api_access_key:
        logger.warning("API_ACCESS_KEY is not set; every ingestion request will be rejected")
    return settings
