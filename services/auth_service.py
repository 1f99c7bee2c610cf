from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import Unauthenticated, ValidationError
from core.security import get_password_hash, verify_password
from models.models import User
from utils.logger import logger

INVALID_CREDENTIALS = "Invalid email or password"
DUPLICATE_EMAIL = "A user with this email already exists"

# Compared against when the email is unknown so both failure paths cost a bcrypt check
_DUMMY_HASH = None

def _dummy_hash() -> str:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = get_password_hash("not-a-real-password")
    return _DUMMY_HASH

class AuthService:
    """Authentication service backed by the users table."""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str):
        return self.db.query(User).filter(User.email == email.lower()).first()

    def create_user(self, name: str, email: str, password: str) -> User:
        """Create a new user; duplicate emails are a validation failure."""
        email = email.lower()
        if self.get_user_by_email(email):
            raise ValidationError.single("email", DUPLICATE_EMAIL)

        user = User(name=name.strip(), email=email, password_hash=get_password_hash(password))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a signup race on the unique email column
            self.db.rollback()
            raise ValidationError.single("email", DUPLICATE_EMAIL)
        self.db.refresh(user)
        logger.info(f"Created user: {user.id}")
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        """Return the matching user or raise the same Unauthenticated for every failure."""
        user = self.get_user_by_email(email)
        if user is None:
            verify_password(password, _dummy_hash())
            raise Unauthenticated(INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            raise Unauthenticated(INVALID_CREDENTIALS)
        return user
