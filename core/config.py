import os
import logging
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

class Settings(BaseModel):
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    port: int = 3000
    log_level: str = "INFO"
    http_timeout: float = 30.0 # seconds, for Supabase requests

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url)

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

def load_settings() -> Settings:
    """
    Read settings from the environment (and .env if present)
    Missing credentials are not an error here, they only show up in /health
    """
    load_dotenv()

    settings = Settings(
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        port=int(os.getenv("PORT", "3000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
    )

    if not settings.supabase_configured:
        logger.warning("SUPABASE_URL ist nicht gesetzt")
    if not settings.openai_configured:
        logger.warning("OPENAI_API_KEY ist nicht gesetzt")
    return settings
