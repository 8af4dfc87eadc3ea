"""
Application configuration module using Pydantic Settings.
Loads configuration from environment variables and .env file.
"""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = Field(default="CodeLearnn", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment (development/production)")
    debug: bool = Field(default=True, description="Debug mode")
    frontend_url: str = Field(default="http://localhost:5173", description="Frontend URL used in emails and CORS")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, description="API port")
    api_prefix: str = Field(default="/api", description="API prefix")
    cors_origins: str = Field(default="", description="Comma-separated list of allowed origins")

    # MongoDB
    mongodb_url: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URL")
    mongodb_db_name: str = Field(default="codelearnn", description="MongoDB database name")
    mongodb_min_pool_size: int = Field(default=10, description="MongoDB min pool size")
    mongodb_max_pool_size: int = Field(default=100, description="MongoDB max pool size")

    # Security
    secret_key: str = Field(default="change-me-in-production", description="Secret key for JWT")
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(default=60 * 24 * 30, description="Access token expiration time")
    allowed_emails: str = Field(default="", description="Comma-separated login whitelist (empty = open)")

    # One-time passwords
    otp_ttl_seconds: int = Field(default=600, description="OTP lifetime, enforced by a TTL index")
    otp_resend_cooldown_seconds: int = Field(default=60, description="Minimum delay between two OTP emails")
    otp_max_attempts: int = Field(default=5, description="Wrong guesses allowed before the OTP is dropped")

    # SMTP
    smtp_host: Optional[str] = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_user: Optional[str] = Field(default=None, description="SMTP username")
    smtp_pass: Optional[str] = Field(default=None, description="SMTP password")
    smtp_secure: bool = Field(default=False, description="Use implicit TLS (port 465)")
    smtp_from: Optional[str] = Field(default=None, description="Sender address, defaults to the CodeLearnn noreply address")

    # YouTube Data API
    youtube_api_key: Optional[str] = Field(default=None, description="YouTube Data API v3 key")
    youtube_api_base_url: str = Field(default="https://www.googleapis.com/youtube/v3")
    youtube_cache_ttl_seconds: int = Field(default=30 * 60, description="YouTube response cache TTL")

    # Groq LLM
    groq_api_key: Optional[str] = Field(default=None, description="Primary Groq API key")
    groq_api_key2: Optional[str] = Field(default=None, description="Fallback Groq API key")
    groq_api_url: str = Field(default="https://api.groq.com/openai/v1/chat/completions")
    groq_model: str = Field(default="llama-3.3-70b-versatile", description="Chat completion model")
    groq_cache_ttl_seconds: int = Field(default=60 * 60, description="Evaluation cache TTL")

    # Import pipeline
    import_delay_seconds: float = Field(default=3.0, description="Delay between videos during course import")
    score_update_batch_size: int = Field(default=5, description="Videos evaluated per score update run")
    score_update_delay_seconds: float = Field(default=10.0, description="Delay between score evaluations")

    # Background jobs
    opportunity_check_interval_seconds: int = Field(default=3600, description="Opportunity status sweep interval")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/app.log", description="Log file path")

    @field_validator("allowed_emails")
    @classmethod
    def normalize_allowed_emails(cls, v: str) -> str:
        """Lower-case the whitelist so comparisons are case-insensitive."""
        return ",".join(e.strip().lower() for e in v.split(",") if e.strip())

    @property
    def allowed_email_list(self) -> List[str]:
        """Whitelisted emails, empty when registration is open."""
        return [e for e in self.allowed_emails.split(",") if e]

    @property
    def cors_origin_list(self) -> List[str]:
        """Parse CORS origins, always including the frontend URL."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        if self.frontend_url not in origins:
            origins.append(self.frontend_url)
        return origins

    @property
    def groq_api_keys(self) -> List[str]:
        """Configured Groq keys in fallback order."""
        return [k for k in (self.groq_api_key, self.groq_api_key2) if k]

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)


# Global settings instance
settings = Settings()
