"""User ORM model."""
import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from clubhub.database import Base


class UserRole(str, enum.Enum):
    student = "student"
    leader = "leader"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    roll_number = Column(String(30), nullable=True, unique=True)  # students only
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.student)
    is_active = Column(Boolean, nullable=False, default=True)  # false = blocked by an admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())
