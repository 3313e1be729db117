from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class OMLSettings(BaseSettings):
    """OML_* environment variables (and ``.env``) read at initialization."""

    OML_DOMAIN: Optional[str] = None
    OML_EXP_ID: Optional[str] = None  # deprecated alias of OML_DOMAIN
    OML_NAME: Optional[str] = None
    OML_ID: Optional[str] = None
    OML_COLLECT: Optional[str] = None
    OML_SERVER: Optional[str] = None  # deprecated alias of OML_COLLECT
    OML_URL: Optional[str] = None  # rejected, see options.resolve_options
    OML_LOG_LEVEL: int = 0
    OML_NOOP: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
