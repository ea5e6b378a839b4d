from datetime import datetime
from typing import MutableMapping, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from foundation.core.exceptions import ConflictError, UnauthorizedError
from foundation.core.logging import get_logger
from foundation.db.models import User

logger = get_logger("foundation.auth")

SESSION_KEY_USER_ID = "foundation.auth.user_id"


class Auth:
    """
    Session-backed authentication over the users table.

    The logged-in user's ID is remembered in the session; the user record
    itself is loaded from the database on demand.
    """

    def __init__(self, session: MutableMapping, db: Session):
        self.session = session
        self.db = db

    def register(self, email: str, username: str, password: str) -> User:
        """
        Create a new user

        Raises:
            ConflictError: If the email address or username is already taken
        """
        existing = (
            self.db.query(User)
            .filter(or_(User.email == email, User.username == username))
            .first()
        )
        if existing is not None:
            raise ConflictError(message="A user with this email address or username already exists")

        user = User(
            email=email,
            username=username,
            hashed_password=User.get_password_hash(password),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info("User registered", user_id=user.id)
        return user

    def login(self, identifier: str, password: str) -> User:
        """
        Check the credentials and remember the user in the session

        Args:
            identifier: Email address or username
            password: Plain-text password

        Raises:
            UnauthorizedError: If the credentials are wrong or the user is inactive
        """
        user = (
            self.db.query(User)
            .filter(or_(User.email == identifier, User.username == identifier))
            .first()
        )
        if user is None or not user.verify_password(password):
            logger.warning("Login failed", identifier=identifier)
            raise UnauthorizedError(message="Invalid credentials")
        if not user.is_active:
            raise UnauthorizedError(message="User account is inactive")

        user.last_login = datetime.utcnow()
        self.db.commit()

        self.session[SESSION_KEY_USER_ID] = user.id
        logger.info("User logged in", user_id=user.id)
        return user

    def logout(self) -> None:
        self.session.pop(SESSION_KEY_USER_ID, None)

    def is_logged_in(self) -> bool:
        return self.session.get(SESSION_KEY_USER_ID) is not None

    def user_id(self) -> Optional[str]:
        return self.session.get(SESSION_KEY_USER_ID)

    def user(self) -> Optional[User]:
        """Load the logged-in user, or ``None`` if nobody is logged in"""
        user_id = self.user_id()
        if user_id is None:
            return None
        return self.db.get(User, user_id)
