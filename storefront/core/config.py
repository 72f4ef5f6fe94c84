from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "WatchStorefront"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "storefront"
    MONGO_TLS: bool = False  # Atlas (mongodb+srv) needs True

    # Redis (optional, carts fall back to process memory)
    REDIS_URL: str = ""

    # Cart store
    cart_ttl: int = 7 * 24 * 3600               # 7 days
    cart_key_prefix: str = "cart"

    # Admin capability (X-Admin-Token header)
    ADMIN_TOKEN: str = ""

    # Checkout / pricing
    CHECKOUT_DELAY_S: float = 2.0               # simulated payment processing
    SHIPPING_FLAT_RATE: float = 29.99
    TAX_RATE: float = 0.10

    # Catalog
    DEFAULT_PAGE_LIMIT: int = 100
    MAX_PAGE_LIMIT: int = 500

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
