from uuid import uuid4
from pydantic import BaseModel
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from .base import Base

class UserORM(Base):
    """An annotator or administrator. Labels record the creator by email."""
    __tablename__ = 'users'

    id: Mapped[str] = mapped_column(primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(nullable=True)
    enabled: Mapped[bool] = mapped_column(default=True)
    role: Mapped[str] = mapped_column(default="user")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

class User(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    enabled: bool = True
    role: str = "user"

    @staticmethod
    def from_orm_user(user: UserORM) -> 'User':
        return User(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            enabled=user.enabled,
            role=user.role
        )
