import uuid
from typing import Literal

from fastapi_users import schemas

Role = Literal["admin", "manager", "storekeeper"]


class UserRead(schemas.BaseUser[uuid.UUID]):
    role: Role


class UserCreate(schemas.BaseUserCreate):
    role: Role = "storekeeper"


class UserUpdate(schemas.BaseUserUpdate):
    pass
