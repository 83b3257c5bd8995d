"""Configuration for the sheetdash service"""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Service info
    SERVICE_NAME: str = "Sheetdash Service"
    SERVICE_HOST: str = "0.0.0.0"
    SERVICE_PORT: int = 8000

    # Database
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "sheetdash"
    DB_PASSWORD: str = "sheetdash"
    DB_NAME: str = "sheetdash"
    DATABASE_URL_OVERRIDE: Optional[str] = None

    # Clerk identity provider
    CLERK_JWKS_URL: Optional[str] = None
    CLERK_JWT_KEY: Optional[str] = None
    CLERK_ISSUER: Optional[str] = None
    CLERK_WEBHOOK_SECRET: Optional[str] = None
    CLERK_WEBHOOK_TOLERANCE: int = 300  # seconds

    # LLM
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None
    MISTRAL_API_KEY: Optional[str] = None
    EXTRACTION_PROVIDER: str = "openai"
    EXTRACTION_MODEL: str = "gpt-4o"
    EXTRACTION_TEMPERATURE: float = 0.1
    EXTRACTION_MAX_TOKENS: int = 4000
    ASSISTANT_TEMPERATURE: float = 0.3
    LLM_TIMEOUT: int = 120

    # Airtable
    AIRTABLE_API_URL: str = "https://api.airtable.com/v0"
    AIRTABLE_ENCRYPTION_KEY: str = "default-key-change-in-production"
    AIRTABLE_MAX_RECORDS: int = 1000
    AIRTABLE_PAGE_SIZE: int = 100
    AIRTABLE_TIMEOUT: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def DATABASE_URL(self) -> str:
        """Construct database URL"""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
