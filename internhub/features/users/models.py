import enum
import uuid

from sqlalchemy import Boolean, Column, Enum, String, Uuid

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    INTERN = "INTERN"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.INTERN, index=True)
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
