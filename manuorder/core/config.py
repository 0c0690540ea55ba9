# manuorder/core/config.py
import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(env_name: str, default: bool = False) -> bool:
    val = os.getenv(env_name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


class Settings:
    # --- API Info ---
    API_TITLE: str = "ManuOrder API"
    API_DESCRIPTION: str = "Custom manufacturing orders: design files, quotations and production tracking."
    API_VERSION: str = "1.0.0"

    # --- Server Configuration ---
    PORT: int = int(os.getenv("PORT", "8000"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    CORS_ORIGINS: list = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    ]

    # --- Database ---
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./manuorder.db")
    DB_TIMEOUT_SECONDS: float = float(os.getenv("DB_TIMEOUT_SECONDS", "10"))

    # --- Sessions (issued by the identity provider) ---
    SESSION_SECRET_KEY: str = os.getenv("SESSION_SECRET_KEY", "dev-secret-change-me")
    SESSION_ALGORITHM: str = os.getenv("SESSION_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # --- Blob storage ---
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID", "")
    AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY", "")
    AWS_S3_BUCKET: str = os.getenv("AWS_S3_BUCKET", "")
    S3_CONNECT_TIMEOUT_SECONDS: float = float(os.getenv("S3_CONNECT_TIMEOUT_SECONDS", "5"))
    S3_READ_TIMEOUT_SECONDS: float = float(os.getenv("S3_READ_TIMEOUT_SECONDS", "15"))
    S3_MAX_ATTEMPTS: int = int(os.getenv("S3_MAX_ATTEMPTS", "3"))
    SIGNED_URL_TTL_SECONDS: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "3600"))
    UPLOAD_ROOT: str = os.getenv("UPLOAD_ROOT", "uploads")
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # --- Order lifecycle ---
    # When enabled, admins may set any status regardless of the transition table.
    ALLOW_STATUS_OVERRIDE: bool = _get_bool("ALLOW_STATUS_OVERRIDE", False)
    ORDER_NUMBER_MAX_RETRIES: int = int(os.getenv("ORDER_NUMBER_MAX_RETRIES", "5"))
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD")


settings = Settings()
