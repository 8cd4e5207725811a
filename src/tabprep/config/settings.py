from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings managed via Pydantic Settings.
    Reads variables from environment and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # --- Application Meta ---
    APP_NAME: str = "Tabprep Preprocessing Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Logging ---
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"

    # --- Server Configuration ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # --- Data Ingestion Limits ---
    MAX_UPLOAD_SIZE_MB: int = 10
    MAX_PREPROCESS_ROWS: int = Field(10_000, description="Rows handed to the pipeline per upload")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Normalises the level name. Unknown names fall back to INFO
        so a typo in .env never stops the service from starting.
        """
        level = (v or "INFO").upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return "INFO"
        return level

    @field_validator("MAX_PREPROCESS_ROWS", "MAX_UPLOAD_SIZE_MB")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


settings = Settings()
