from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="RATE_LIMIT_", extra="ignore")

    app_name: str = "B People"
    # Decoupled from every policy window; expired records are already ignored by check().
    sweep_interval_seconds: float = Field(default=60.0, gt=0)
    sweep_enabled: bool = True
    # Only safe behind a reverse proxy that overwrites X-Forwarded-For.
    trust_forwarded_for: bool = True


settings = Settings()
