from typing import Any, Dict, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_ci_status.config_loader import load_repo_config


class Settings(BaseSettings):
    # --- GitHub ---
    github_token: str = ""  # Sent as a bearer token when set
    # Additional hostname to treat as GitHub (e.g. an Enterprise Server)
    github_host: Optional[str] = None
    github_api_url: str = "https://api.github.com"

    # --- Polling ---
    poll_interval: float = 5.0  # Seconds between polls while waiting
    request_timeout: float = 30.0

    # --- Pydantic settings ---
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Repo config is overlaid with setattr; coerce it like env values
        validate_assignment=True,
    )


def apply_repo_config(target: Settings, repo_conf: Dict[str, Any]) -> None:
    for k, v in repo_conf.items():
        key = str(k).lower()
        if key not in Settings.model_fields:
            continue
        try:
            setattr(target, key, v)
        except ValidationError:
            # Non-fatal: keep the env/default value
            continue


# Initialize with env first
settings = Settings()

# Overlay with repo config if present
apply_repo_config(settings, load_repo_config())
