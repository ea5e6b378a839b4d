from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime
import uuid
from passlib.context import CryptContext

from foundation.db.database import Base

# Setup password context for hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class User(Base):
    """User model for authentication"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    def verify_password(self, plain_password):
        """Verify password against hashed password"""
        return pwd_context.verify(plain_password, self.hashed_password)

    @classmethod
    def get_password_hash(cls, password):
        """Generate password hash"""
        return pwd_context.hash(password)
