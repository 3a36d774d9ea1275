import json
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_files() -> list[str]:
    """Load .env from backend root (when running from services/surveys) then local .env."""
    base = Path(__file__).resolve().parent.parent.parent.parent  # backend root
    return [str(base / ".env"), ".env"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    survey_api_url: str = "http://localhost:8080/api"
    survey_store_backend: str = "http"  # "http" | "memory"
    http_timeout_secs: float = 10.0
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    env_name: str = "development"
    cors_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> list[str]:
        raw = self.cors_origins.strip()
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    return [str(o).strip() for o in parsed if str(o).strip()]
            except (json.JSONDecodeError, ValueError):
                pass
        return [x.strip() for x in raw.split(",") if x.strip()]

    # Live results
    results_polling_interval_secs: float = 5.0

    # CSV export
    export_timezone: str = "Europe/Madrid"
    export_output_dir: str = "exports"
