from pydantic_settings import BaseSettings
from typing import List, Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "bookshelf"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # overrides the postgres parts (sqlite in dev and tests)
    sqlalchemy_database_url: Optional[str] = None

    # Pi Network platform API
    pi_api_key: str
    pi_api_url: str = "https://api.minepi.com/v2"
    pi_api_timeout_seconds: float = 8.0

    # stuck payment recovery
    resolve_grace_seconds: int = 120
    resolve_backoff_seconds: int = 30
    resolve_backoff_max_seconds: int = 3600
    resolve_batch_size: int = 50

    # creator payouts
    creator_share: float = 0.7
    min_payout_amount: float = 5.0
    payout_currency: str = "PI"

    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "https://sandbox.minepi.com",
    ]

    @property
    def database_url(self):
        if self.sqlalchemy_database_url:
            return self.sqlalchemy_database_url

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
