"""
Gateway Configuration
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Gateway settings"""

    SERVICE_NAME: str = "gateway"
    VERSION: str = "1.0.0"

    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Upstreams
    NEWS_SERVICE_URL: str = "http://localhost:5001"
    USERS_SERVICE_URL: str = "http://localhost:5002"
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


settings = Settings()
