"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Candidate Assessments API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database (app.models.base reads the same variable at import time)
    DATABASE_URL: str = ""

    # Security
    # IMPORTANT: Must be set in .env file - no default for security.
    # Tokens are issued by the identity service; this service only verifies them.
    JWT_SECRET_KEY: str = Field(..., description="JWT verification secret key (required)")
    JWT_ALGORITHM: str = "HS256"

    # Video uploads
    VIDEO_MAX_FILE_SIZE_MB: int = Field(default=200, gt=0)
    VIDEO_ALLOWED_CONTENT_TYPES: List[str] = [
        "video/mp4",
        "video/webm",
        "video/quicktime",
        "video/x-msvideo",
    ]
    VIDEO_ALLOWED_EXTENSIONS: List[str] = [".mp4", ".webm", ".mov", ".avi"]
    VIDEO_URL_TTL_MINUTES: int = Field(default=60, gt=0)

    # Blob storage
    BLOB_STORAGE_ROOT: str = "./var/blobs"
    BLOB_PUBLIC_BASE_URL: str = "http://localhost:8000/blobs"
    BLOB_URL_SIGNING_KEY: str = Field(
        default="",
        repr=False,
        description="HMAC key for temporary read URLs (falls back to JWT_SECRET_KEY)",
    )

    # External AI analysis agent (notified when a video is uploaded)
    AI_AGENT_ENABLED: bool = False
    AI_AGENT_BASE_URL: str = ""
    AI_AGENT_ANALYZE_PATH: str = "/api/analyze"
    AI_AGENT_API_KEY: str = Field(default="", repr=False)
    AI_AGENT_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_video_allow_lists(self) -> Self:
        """Reject configurations that would refuse every upload."""
        if not self.VIDEO_ALLOWED_CONTENT_TYPES:
            raise ValueError("VIDEO_ALLOWED_CONTENT_TYPES must not be empty")
        if not self.VIDEO_ALLOWED_EXTENSIONS:
            raise ValueError("VIDEO_ALLOWED_EXTENSIONS must not be empty")
        bad = [e for e in self.VIDEO_ALLOWED_EXTENSIONS if not e.startswith(".")]
        if bad:
            raise ValueError(
                f"VIDEO_ALLOWED_EXTENSIONS entries must start with '.', got {bad}"
            )
        return self

    @model_validator(mode="after")
    def validate_ai_agent_config(self) -> Self:
        """Validate AI agent configuration at startup."""
        if self.AI_AGENT_ENABLED and not self.AI_AGENT_BASE_URL:
            raise ValueError("AI_AGENT_BASE_URL must be set when AI_AGENT_ENABLED=True")
        return self

    @property
    def video_max_file_size_bytes(self) -> int:
        return self.VIDEO_MAX_FILE_SIZE_MB * 1024 * 1024


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
