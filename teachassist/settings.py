"""Application settings loaded from environment variables."""

from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_LOCAL_DATA_DIR = BASE_DIR / "data"


class Settings(BaseSettings):
    """Runtime configuration for the TeachAssist backend."""

    model_config = SettingsConfigDict(env_prefix="TEACHASSIST_", extra="ignore")

    app_name: str = "TeachAssist API"
    data_dir: str = Field(
        default=str(DEFAULT_LOCAL_DATA_DIR),
        validation_alias=AliasChoices("TEACHASSIST_DATA_DIR", "DATA_DIR"),
    )
    sqlite_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TEACHASSIST_SQLITE_PATH", "SQLITE_PATH"),
    )

    # CORS configuration
    cors_allow_origins: str = Field(
        default="*",
        validation_alias=AliasChoices("TEACHASSIST_CORS_ALLOW_ORIGINS", "CORS_ALLOW_ORIGINS"),
    )

    # Model calls
    openai_model: str = Field(
        default="gpt-4o",
        validation_alias=AliasChoices("TEACHASSIST_OPENAI_MODEL", "OPENAI_MODEL"),
    )
    openai_timeout_seconds: float = 60.0
    openai_max_tokens: int = 1500
    grading_temperature: float = 0.7
    bulk_grading_temperature: float = 0.5

    # Pause between submissions during bulk grading, to stay under upstream rate limits
    bulk_grade_delay_seconds: float = 1.0

    @model_validator(mode="after")
    def _set_sqlite_path(self) -> "Settings":
        if not self.sqlite_path:
            self.sqlite_path = str(Path(self.data_dir) / "teachassist.db")
        return self

    @property
    def sqlite_url(self) -> str:
        return f"sqlite:///{self.sqlite_path}"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def cors_origin_list(self) -> list[str]:
        if self.cors_allow_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


settings = Settings()
