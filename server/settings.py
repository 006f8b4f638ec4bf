import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Storage Configuration
    data_dir: str = Field(default="./data", alias="DATA_DIR")
    entry_store_backend: str = Field(default="file", alias="ENTRY_STORE_BACKEND")

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./mama.db", alias="DATABASE_URL"
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # SMTP Configuration
    smtp_host: str = Field(default="", alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_secure: bool = Field(default=False, alias="SMTP_SECURE")
    smtp_user: str = Field(default="", alias="SMTP_USER")
    smtp_pass: str = Field(default="", alias="SMTP_PASS")
    smtp_timeout: int = Field(default=30, alias="SMTP_TIMEOUT")
    mail_from_name: str = Field(default="MAMA App", alias="MAIL_FROM_NAME")

    # Confirmation Code Configuration
    confirmation_code_ttl_minutes: int = Field(
        default=10, alias="CONFIRMATION_CODE_TTL_MINUTES"
    )
    confirmation_code_retention_minutes: int = Field(
        default=60, alias="CONFIRMATION_CODE_RETENTION_MINUTES"
    )
    confirmation_sweep_interval_minutes: int = Field(
        default=5, alias="CONFIRMATION_SWEEP_INTERVAL_MINUTES"
    )
    confirmation_store_max_size: int = Field(
        default=10000, alias="CONFIRMATION_STORE_MAX_SIZE"
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


global_settings = Settings.model_validate(dict(os.environ))
