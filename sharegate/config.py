from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Persistence
    database_url: str = "sqlite:///./sharegate.sqlite3"

    # External collaborators
    catalog_base_url: str = "http://127.0.0.1:8101/v1/catalog"
    grant_base_url: str = "http://127.0.0.1:8102/v1/grants"
    events_base_url: str = "http://127.0.0.1:8103/v1/events"
    http_timeout_seconds: float = 30.0

    # Approval listing
    pending_page_size: int = 50

    # Classification
    confidentiality_tag_key: str = "confidentiality"
    sensitive_tag_value: str = "sensitive"

    class Config:
        env_file = ".env"
        env_prefix = "SHAREGATE_"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
