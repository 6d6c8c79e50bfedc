import os
from pydantic_settings import BaseSettings
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    """Configuration settings for the application."""
    PROJECT_NAME: str = "Marketplace Admin API"
    MONGO_URI: Optional[str] = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: Optional[str] = os.getenv("DB_NAME", "marketplace")

    SUBMISSIONS_COLLECTION: str = "productSubmissions"
    PRODUCTS_COLLECTION: str = "products"
    SHOPS_COLLECTION: str = "shops"
    AUDIT_COLLECTION: str = "audit_logs"

    SHOP_PAGE_SIZE: int = 8
    STORE_TIMEOUT_SECONDS: float = 10.0
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
