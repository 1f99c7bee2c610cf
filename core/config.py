from pydantic import BaseModel
from typing import List, Optional
import os

class Settings(BaseModel):
    """Application settings and configuration."""

    # App settings
    APP_NAME: str = "Expense Ledger"
    VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5000"))

    # Security - no default secret; auth routes refuse to run without one
    SECRET_KEY: Optional[str] = os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY") or None
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    PASSWORD_MIN_LENGTH: int = 6

    # CORS
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
    ALLOWED_HOSTS: List[str] = ["*"]

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./expense_ledger.db")

    # Client transport
    API_BASE_URL: str = os.getenv("EXPENSE_API_URL", "http://localhost:5000")
    CLIENT_TIMEOUT: float = float(os.getenv("EXPENSE_CLIENT_TIMEOUT", "10"))
    CLIENT_MAX_RETRIES: int = 3
    CLIENT_BACKOFF_BASE: float = 1.0
    CREDENTIALS_PATH: str = os.getenv(
        "EXPENSE_CREDENTIALS_PATH",
        os.path.join(os.path.expanduser("~"), ".expense_ledger", "credentials.json"),
    )

    class Config:
        env_file = ".env"
        case_sensitive = True

# Create settings instance
settings = Settings()
