from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Remote catalog/order service
    ORDER_API_BASE_URL: str = "http://localhost:8080"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Local cart storage
    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"
    CART_STORAGE_KEY: str = "cart"

    # Scheduling
    REJECT_PAST_SCHEDULES: bool = False

    # Local HTTP surface
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Shop Configuration
    SHOP_NAME: str = "Storefront"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
