from pathlib import Path
from typing import Literal, Optional

from pydantic import SecretStr, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IFormSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IFORM_", extra="ignore")
    server_name: str
    client_key: SecretStr
    client_secret: SecretStr
    profile_id: Optional[int] = None
    token_lifetime: int = 600  # seconds the signed JWT assertion stays valid

    # Only needed for the data feed mechanism. Avoid if possible, the API is safer.
    data_feed_user: Optional[str] = None
    data_feed_password: Optional[SecretStr] = None


class Settings(BaseSettings):

    # ---- Data roots (used by the sync pipelines) ----
    data_root: Path = Path("data")
    processed_dir: Optional[Path] = None  # defaults to data_root/processed

    # ---- app/runtime ----
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    verify_ssl: bool = True

    # ---- HTTP ----
    request_timeout: float = 30.0
    total_retries: int = 3
    backoff_factor: float = 1.0

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_prefix="APP_",      # APP_LOG_LEVEL, APP_VERIFY_SSL, etc.
        env_nested_delimiter='__',
        extra = "ignore"
    )

    # ---- integrations ----
    iform: Optional[IFormSettings] = None  # <-- DO NOT instantiate here

    @model_validator(mode="after")
    def _default_processed_dir(self) -> "Settings":
        if self.processed_dir is None:
            self.processed_dir = self.data_root / "processed"
        return self


def get_settings() -> Settings:
    """Accessor kept as a function so tests and scripts re-read the environment."""
    return Settings()


def get_iform_settings() -> Optional[IFormSettings]:
    """
    iFormBuilder credentials, from APP_IFORM__* first, then IFORM_* variables.
    Returns None when neither source is complete.
    """
    cfg = get_settings()
    if cfg.iform is not None:
        return cfg.iform
    try:
        return IFormSettings()
    except ValidationError:
        return None
