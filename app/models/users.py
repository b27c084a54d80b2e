# app/models/users.py

import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func

from app.database import Base


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)

    # ADMIN may read and delete any sale
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.USER, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
