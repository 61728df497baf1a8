"""
Application configuration management.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from package directory
_PACKAGE_DIR = Path(__file__).parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Try loading .env from multiple locations
for env_path in [_PACKAGE_DIR / ".env", _PROJECT_ROOT / ".env"]:
    if env_path.exists():
        load_dotenv(env_path)
        break


class Config:
    """Application configuration loaded from environment variables."""

    # ========================================
    # Paths
    # ========================================
    BASE_DIR: Path = _PACKAGE_DIR
    PROJECT_ROOT: Path = _PROJECT_ROOT
    DEFAULT_SESSION_FILE: Path = Path(
        os.getenv("SESSION_FILE", str(_PROJECT_ROOT / "session.json"))
    )

    # ========================================
    # OpenAI Configuration
    # ========================================
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    OPENAI_TIMEOUT: float = float(os.getenv("OPENAI_TIMEOUT", "60"))

    # Provider throttling (seconds / requests per window)
    AI_MIN_REQUEST_INTERVAL: float = float(os.getenv("AI_MIN_REQUEST_INTERVAL", "4.0"))
    AI_MAX_REQUESTS_PER_MINUTE: int = int(os.getenv("AI_MAX_REQUESTS_PER_MINUTE", "15"))
    AI_RATE_WINDOW: float = float(os.getenv("AI_RATE_WINDOW", "60"))

    # ========================================
    # SMTP
    # ========================================
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    SMTP_TIMEOUT: float = float(os.getenv("SMTP_TIMEOUT", "30"))

    # Pause between consecutive messages
    EMAIL_SEND_DELAY_SECONDS: float = float(os.getenv("EMAIL_SEND_DELAY_SECONDS", "2"))

    # ========================================
    # OCR (image-only PDFs)
    # ========================================
    OCR_ENABLED: bool = os.getenv("OCR_ENABLED", "true").lower() == "true"
    OCR_LANG: str = os.getenv("OCR_LANG", "eng")
    OCR_DPI: int = int(os.getenv("OCR_DPI", "200"))

    # ========================================
    # Server Configuration
    # ========================================
    FLASK_DEBUG: bool = os.getenv("FLASK_DEBUG", "false").lower() == "true"
    API_HOST: str = os.getenv("API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("API_PORT", "5000"))
    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "10"))

    # CORS
    ALLOWED_ORIGINS: list[str] = os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not cls.OPENAI_API_KEY:
            errors.append("OPENAI_API_KEY is not set (emails will use template mode)")

        if cls.AI_MAX_REQUESTS_PER_MINUTE < 1:
            errors.append("AI_MAX_REQUESTS_PER_MINUTE must be at least 1")

        if cls.SMTP_USER and not cls.SMTP_PASSWORD:
            errors.append("SMTP_PASSWORD is not set for SMTP_USER")

        return errors


# Create singleton instance
config = Config()
