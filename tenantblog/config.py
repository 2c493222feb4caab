from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "tenantblog"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    PAGE_SIZE: int = 10
    DEFAULT_FEATURED_IMAGE: str = "/images/default-blog.jpg"
    DEFAULT_CATEGORY: str = "Uncategorized"
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000


    class Config:
        env_file = ".env"


settings = Settings()
