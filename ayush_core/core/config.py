"""Application configuration for the AYUSH terminology service.

Configuration is loaded from environment variables (or a local ``.env``),
making the service suitable for container-based deployments.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DATA_DIR = Path(__file__).resolve().parents[1] / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "AYUSH Terminology Core"
    app_version: str = "0.1.0"
    port: int = 5000
    log_level: str = "INFO"

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # WHO ICD-11 API credentials. MANUAL_TOKEN bypasses the client-credentials grant.
    client_id: str = ""
    client_secret: str = ""
    manual_token: str = ""
    sandbox: bool = False

    who_release_url: str = "https://id.who.int/icd/release/11/2024-01/mms"
    who_token_url: str = "https://icdaccessmanagement.who.int/connect/token"
    who_token_scope: str = "icdapi_access"
    who_request_timeout_seconds: float = 15.0
    who_cache_ttl_seconds: float = 300.0
    token_expiry_margin_seconds: float = 20.0

    data_dir: Path = _PACKAGE_DATA_DIR

    @property
    def who_search_url(self) -> str:
        return f"{self.who_release_url.rstrip('/')}/search"

    @property
    def has_credentials(self) -> bool:
        if self.manual_token.strip():
            return True
        return bool(self.client_id.strip() and self.client_secret.strip())


settings = Settings()
