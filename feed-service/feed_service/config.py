"""
Configuration settings for Feed Service
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Editorial Feed Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8005

    # Backend (Supabase project: GraphQL + PostgREST)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    # HTTP client
    HTTP_TIMEOUT: float = 10.0
    HTTP_CONNECT_TIMEOUT: float = 5.0

    # Feed
    POSTS_PER_PAGE: int = 5
    EXCERPT_PREVIEW_LENGTH: int = 200
    ASSEMBLY_STRATEGY: str = "auto"  # auto | join | manual

    # Cache TTL (seconds)
    POSTS_CACHE_TTL: int = 60
    CATEGORY_CACHE_TTL: int = 0  # 0 keeps the catalog for the whole session

    # Cache backend
    CACHE_BACKEND: str = "memory"  # memory | redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 2
    REDIS_PASSWORD: str = ""
    REDIS_KEY_PREFIX: str = "feed"
    REDIS_SESSION_TTL: int = 86400  # upper bound for entries stored without a TTL

    # Sessions
    MAX_SESSIONS: int = 1000

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
