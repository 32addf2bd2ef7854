from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from .models import User, UserRole


class UserRepository:
    """SQLAlchemy repository for platform users."""

    @staticmethod
    def get_by_id(db: Session, user_id: UUID, for_update: bool = False) -> Optional[User]:
        if for_update:
            return db.query(User).filter(User.id == user_id).with_for_update().first()
        return db.get(User, user_id)

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def list_query(db: Session, role: Optional[UserRole] = None, is_active: Optional[bool] = None):
        q = db.query(User)
        if role is not None:
            q = q.filter(User.role == role)
        if is_active is not None:
            q = q.filter(User.is_active.is_(is_active))
        return q.order_by(User.created_at.desc())

    @staticmethod
    def create_user(db: Session, email: str, name: str, role: UserRole = UserRole.INTERN) -> User:
        user = User(email=email.strip().lower(), name=name.strip(), role=role, is_active=True)
        db.add(user)
        db.flush()
        return user


user_repository = UserRepository()
