"""
Application configuration.

Loads environment variables (and an optional .env file) into a typed settings object.
"""

from typing import List, Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Application
    app_name: str = "Aged Inventory Report"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False

    # CORS
    cors_origins: List[str] = Field(default=["*"])
    cors_allow_credentials: bool = False

    # Local table store
    DATABASE_URL: str = Field(default="sqlite:///./aged_inventory.db")

    # Product catalog DB (read-only), source of style images and the Zoho refresh token
    CATALOG_DATABASE_URL: Optional[str] = Field(default=None)
    CATALOG_SYNC_ENABLED: bool = Field(default=True)
    CATALOG_SYNC_INTERVAL_SECONDS: int = Field(default=6 * 60 * 60, ge=1)
    CATALOG_RESERVED_STYLE_PREFIX: str = Field(default="Grand")

    # "preserve" carries operator flags across imports, "reset" clears them every import
    FLAG_POLICY: Literal["preserve", "reset"] = Field(default="preserve")

    # Zoho OAuth (protected WorkDrive images)
    ZOHO_REFRESH_TOKEN: Optional[str] = Field(default=None)
    ZOHO_CLIENT_ID: Optional[str] = Field(default=None)
    ZOHO_CLIENT_SECRET: Optional[str] = Field(default=None)
    ZOHO_TOKEN_URL: str = Field(default="https://accounts.zoho.com/oauth/v2/token")
    ZOHO_TOKEN_SAFETY_MARGIN_SECONDS: int = Field(default=60, ge=0)

    # Image proxy / uploads
    IMAGE_PROXY_ALLOWED_HOST: str = Field(default="zoho.com")
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0)
    UPLOAD_MAX_BYTES: int = Field(default=20 * 1024 * 1024)

    @property
    def log_format(self) -> str:
        if self.debug:
            return "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        return "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
