from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "StackShift Quote"
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:8080", "http://localhost:5173"]
    LOG_LEVEL: str = "INFO"

    # Quote pricing
    PRICE_PER_NODE: int = 20
    MINIMUM_PRICE: int = 200

    # Upload limits
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    MAX_NODE_COUNT: int = 10000
    MAX_TRAVERSAL_DEPTH: int = 20

    # Savings projections
    DEFAULT_EXECUTIONS_PER_DAY: int = 10
    SELF_HOSTED_MONTHLY_COST: float = 0

    # Quote sessions
    QUOTE_SESSION_TTL_HOURS: float = 24

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
