"""User model for platform authentication"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Enum, Uuid
from sqlalchemy.orm import relationship
import enum

from app.core.clock import utcnow
from app.database import Base


class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    ADMIN = "admin"
    MANAGER = "manager"
    CUSTOMER = "customer"


class User(Base):
    """Platform users (travellers and back-office staff)"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    full_name = Column(String(255))
    phone = Column(String(20))

    # Role
    role = Column(Enum(UserRole), default=UserRole.CUSTOMER)

    # Status
    is_active = Column(Boolean, default=True)

    # Tokens
    refresh_token = Column(String(500))

    # Timestamps
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    reservations = relationship("Reservation", back_populates="user")

    def has_permission(self, required_role: UserRole) -> bool:
        """Check if user has at least the required role level"""
        role_hierarchy = {
            UserRole.CUSTOMER: 1,
            UserRole.MANAGER: 2,
            UserRole.ADMIN: 3,
        }
        return role_hierarchy.get(self.role, 0) >= role_hierarchy.get(required_role, 0)
