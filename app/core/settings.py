from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    google_cloud_project: str | None = Field(default=None, validation_alias="GOOGLE_CLOUD_PROJECT")
    google_cloud_location: str = Field(default="us-central1", validation_alias="GOOGLE_CLOUD_LOCATION")

    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_identify_model: str = Field(
        default="gemini-3-flash-preview",
        validation_alias="GEMINI_IDENTIFY_MODEL",
    )
    gemini_detail_model: str = Field(
        default="gemini-3-pro-preview",
        validation_alias="GEMINI_DETAIL_MODEL",
    )

    identify_max_chars: int = Field(default=10_000, validation_alias="IDENTIFY_MAX_CHARS")
    detail_max_chars: int = Field(default=8_000, validation_alias="DETAIL_MAX_CHARS")
    character_skip_delay_seconds: float = Field(
        default=2.0,
        validation_alias="CHARACTER_SKIP_DELAY_SECONDS",
    )

    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        validation_alias="CORS_ORIGINS",
    )


settings = Settings()
