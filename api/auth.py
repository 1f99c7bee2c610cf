from fastapi import APIRouter, HTTPException, Depends, status

from core.dependencies import get_auth_service
from core.exceptions import LedgerError
from core.security import create_access_token, require_secret_key
from schemas.auth import AuthResponse, LoginRequest, SignupRequest, UserResponse
from services.auth_service import AuthService
from utils.logger import logger

router = APIRouter()

def _auth_response(message: str, user) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=create_access_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )

@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    user_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user and return a bearer token."""
    try:
        # Refuse before creating an account we could not issue a token for
        require_secret_key()
        user = auth_service.create_user(user_data.name, user_data.email, user_data.password)
        logger.info(f"New user registered: {user.id}")
        return _auth_response("Signup successful", user)

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        auth_service.db.rollback()
        logger.error(f"Signup error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sign up"
        )

@router.post("/login", response_model=AuthResponse)
def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange email and password for a bearer token."""
    try:
        require_secret_key()
        user = auth_service.authenticate_user(credentials.email, credentials.password)
        logger.info(f"User logged in: {user.id}")
        return _auth_response("Login successful", user)

    except (HTTPException, LedgerError):
        raise
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to log in"
        )
