import sys
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Find .env even in frozen or packaged mode
POSSIBLE_ENV_PATHS = [
    Path(__file__).resolve().parent.parent / ".env",        # normal
    Path(sys.executable).resolve().parent / ".env",         # frozen exe
    Path.cwd() / ".env",                                    # runtime cwd
]

for env_path in POSSIBLE_ENV_PATHS:
    if env_path.exists():
        load_dotenv(env_path, override=False)
        break


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./honesty_store.db"

    # Hosted auth provider (tokens are verified here, never issued)
    AUTH_JWT_SECRET: str = "change_this_jwt_secret"
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str = "authenticated"
    ROLE_CLAIM: str = "role"

    # Store
    STORE_TIMEZONE: str = "Asia/Kolkata"
    CURRENCY_SYMBOL: str = "₹"
    LOW_STOCK_THRESHOLD: int = 5

    # Stock accounting behaviour
    ORDER_COUNT_SOURCE: Literal["manual", "orders"] = "manual"
    SYNC_PRODUCT_STOCK: bool = False
    FREEZE_OPENING_STOCK: bool = False

    # Logging
    LOG_FILE: str = "honesty_store.log"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"

settings = Settings()
