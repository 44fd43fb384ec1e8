from fastapi import Depends
from fastapi_users.db import SQLAlchemyBaseUserTableUUID, SQLAlchemyUserDatabase
from sqlalchemy import Column, String
from sqlalchemy.ext.asyncio import AsyncSession

from .database import Base, get_async_session

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_STOREKEEPER = "storekeeper"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_STOREKEEPER)


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"

    role = Column(String(32), nullable=False, default=ROLE_STOREKEEPER, index=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "is_superuser": self.is_superuser,
            "is_verified": self.is_verified,
        }


async def get_user_db(session: AsyncSession = Depends(get_async_session)):
    yield SQLAlchemyUserDatabase(session, User)
