import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


class Settings:
    PROJECT_NAME = "HubMarketocom Accounts"
    BRAND_NAME = os.getenv("BRAND_NAME", "HubMarketocom")

    DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{BASE_DIR / 'accounts.db'}"
    PORT = int(os.getenv("PORT", 5000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Outgoing mail
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    FROM_EMAIL = os.getenv("FROM_EMAIL") or SMTP_USER

    # Credentials
    OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", 300))
    PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", 10))
    # Whether forgot/reset password still find soft-deleted accounts
    DELETED_ACCOUNTS_RECOVERABLE = _env_flag("DELETED_ACCOUNTS_RECOVERABLE", "true")

    # Profile photos: "local" writes under UPLOAD_DIR, "spaces" pushes to DigitalOcean Spaces
    IMAGE_STORE_BACKEND = os.getenv("IMAGE_STORE_BACKEND", "local").lower()
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
    SPACES_REGION = os.getenv("SPACES_REGION")
    SPACES_ENDPOINT = os.getenv("SPACES_ENDPOINT")
    SPACES_KEY = os.getenv("SPACES_KEY")
    SPACES_SECRET = os.getenv("SPACES_SECRET")
    SPACES_NAME = os.getenv("SPACES_NAME")
    SPACES_CDN_URL = os.getenv("SPACES_CDN_URL")
    SPACES_BASE_PATH = (os.getenv("SPACES_BASE_PATH") or "profile_photos").strip("/")

    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]


settings = Settings()
