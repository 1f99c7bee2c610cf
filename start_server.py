#!/usr/bin/env python3
"""
Startup script for the expense ledger backend
"""
import uvicorn

from core.config import settings
from utils.logger import logger

def main():
    if not settings.SECRET_KEY:
        logger.warning("JWT_SECRET is not set. Signup, login and every ledger route will fail.")
    logger.info(f"Database: {settings.DATABASE_URL}")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level="debug" if settings.DEBUG else "info"
    )

if __name__ == "__main__":
    main()
