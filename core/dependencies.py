from typing import Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from connect_db import get_db
from core.exceptions import InvalidTokenError, Unauthenticated
from core.security import decode_access_token
from services.auth_service import AuthService
from services.ledger_service import LedgerService
from utils.logger import logger

# auto_error=False so a missing header reaches our handler as Unauthenticated
bearer_scheme = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, str]:
    """
    Authenticate the request from its ``Authorization: Bearer`` header.

    Returns ``{"id", "email"}`` for downstream handlers. A missing, malformed,
    badly signed or expired token all produce the same Unauthenticated error.
    ConfigError (no signing secret) is allowed to propagate as a 500.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    try:
        return decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.debug(f"Rejected bearer token: {e.message}")
        raise Unauthenticated()

def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)

def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    return LedgerService(db)
