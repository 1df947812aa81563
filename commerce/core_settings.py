from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "taant"
    POSTGRES_USER: str = "taant"
    POSTGRES_PASSWORD: str = "taant"
    # Full SQLAlchemy URL; overrides the POSTGRES_* parts when set
    DATABASE_URL: Optional[str] = None

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"

    # Pricing policy
    CURRENCY: str = "INR"
    TAX_RATE: Decimal = Decimal("0.18")
    SHIPPING_FLAT_AMOUNT: Decimal = Decimal("50.00")

    REDIS_URL: Optional[str] = None
    REVIEW_SUMMARY_TTL: int = 60

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

@lru_cache
def get_settings() -> Settings:
    return Settings()
