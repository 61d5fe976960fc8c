from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_title: str = "Kleurenwiezen Scores"
    log_level: str = "INFO"
    join_code_length: int = 6
    gcs_bucket_name: str | None = None
    gcs_export_prefix: str = "kleurenwiezen-exports"
    export_filename: str = "kleurenwiezen-export.txt"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
