# processor/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    APP_NAME: str = "Postilion Processor"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"

    # ISO listener
    ISO_PORT: int = 2222
    MAX_FRAME: int = 10 * 1024 * 1024  # 10 MB
    READ_TIMEOUT: float = 30.0

    # Admin HTTP API
    ADMIN_PORT: int = 8000

    # Field carrying Postilion structured data inside the envelope
    STRUCTURED_DATA_FIELD: str = "127.22"

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()
