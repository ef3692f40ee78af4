import os
from pathlib import Path
from dotenv import load_dotenv
from fastapi.security import HTTPBearer

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


class Settings:
    PROJECT_NAME = "Digital House API"

    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'digital_house.db'}")

    JWT_SECRET = os.getenv("JWT_SECRET", "change_me_access")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 7 * 24 * 60))
    ADMIN_TOKEN_EXPIRE_MINUTES = int(os.getenv("ADMIN_TOKEN_EXPIRE_MINUTES", 12 * 60))

    OTP_EXPIRES_MINUTES = int(os.getenv("OTP_EXPIRES_MINUTES", 5))
    OTP_RESEND_COOLDOWN_SECONDS = int(os.getenv("OTP_RESEND_COOLDOWN_SECONDS", 60))
    OTP_HASH_PEPPER = os.getenv("OTP_HASH_PEPPER", "dev-pepper")
    LOG_OTP_FOR_DEV = _env_flag("LOG_OTP_FOR_DEV")

    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    SMTP_SECURE = _env_flag("SMTP_SECURE")
    SMTP_TIMEOUT_SECONDS = int(os.getenv("SMTP_TIMEOUT_SECONDS", 10))
    MAIL_FROM = os.getenv("MAIL_FROM")

    ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")
    # "admin@example.com:secret,ops@example.com:other"
    ADMIN_ACCOUNTS = os.getenv("ADMIN_ACCOUNTS", "")

    R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
    R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
    R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
    R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME")
    R2_CDN_PUBLIC_URL = os.getenv("R2_CDN_PUBLIC_URL")
    R2_ENDPOINT = os.getenv("R2_ENDPOINT")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    SEED_OPTIONS = _env_flag("SEED_OPTIONS", "true")

    optional_bearer_scheme = HTTPBearer(auto_error=False)
    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    @property
    def admin_accounts(self) -> dict[str, str]:
        accounts = {}
        for entry in self.ADMIN_ACCOUNTS.split(","):
            email, sep, password = entry.strip().partition(":")
            if sep and email.strip() and password:
                accounts[email.strip().lower()] = password
        return accounts


settings = Settings()
