from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    llm_provider: str = "gemini"
    llm_model: str = "gemini-2.0-flash"
    gemini_api_key: Optional[str] = None
    google_factcheck_api_key: Optional[str] = None
    mock_mode: bool = False
    log_llm_calls: bool = True
    llm_log_dir: str = "./logs"
    log_level: str = "INFO"

    user_agent: str = "FactCheckBot/1.0"
    http_timeout_seconds: float = 15.0
    external_call_timeout_seconds: float = 45.0

    ephemeral_cache_ttl_seconds: float = 600.0
    ephemeral_cache_max_entries: int = 1024
    durable_cache_url: str = "sqlite:///./verifier_cache.db"

    allowed_origins: str = "*"

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

settings = Settings()
