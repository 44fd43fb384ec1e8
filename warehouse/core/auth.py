import logging
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi_users import BaseUserManager, FastAPIUsers, UUIDIDMixin, schemas
from fastapi_users.authentication import AuthenticationBackend, BearerTransport, JWTStrategy
from fastapi_users.exceptions import UserAlreadyExists
from fastapi_users.jwt import generate_jwt

from warehouse.core.config import Settings, get_settings
from warehouse.core.exceptions import AlreadyExists
from warehouse.db.users import User, get_user_db

logger = logging.getLogger(__name__)


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    def __init__(self, user_db, secret: str):
        super().__init__(user_db)
        self.reset_password_token_secret = secret
        self.verification_token_secret = secret

    async def create(self, user_create: schemas.UC, safe: bool = False, request: Optional[Request] = None) -> User:
        try:
            return await super().create(user_create, safe=safe, request=request)
        except UserAlreadyExists:
            raise AlreadyExists("A user with this e-mail already exists", email=user_create.email) from None

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info("User %s registered with role %s", user.id, user.role)


async def get_user_manager(user_db=Depends(get_user_db), settings: Settings = Depends(get_settings)):
    yield UserManager(user_db, settings.jwt_secret)


class RoleJWTStrategy(JWTStrategy):
    """JWT strategy whose tokens also carry the user's role."""

    async def write_token(self, user: User) -> str:
        data = {"sub": str(user.id), "role": user.role, "aud": self.token_audience}
        return generate_jwt(data, self.encode_key, self.lifetime_seconds, algorithm=self.algorithm)


def get_jwt_strategy(settings: Settings = Depends(get_settings)) -> JWTStrategy:
    return RoleJWTStrategy(secret=settings.jwt_secret, lifetime_seconds=settings.jwt_lifetime_seconds)


bearer_transport = BearerTransport(tokenUrl="api/auth/jwt/login")

auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](get_user_manager, [auth_backend])

current_active_user = fastapi_users.current_user(active=True)


def require_roles(*roles: str):
    """Dependency factory: the current user must hold one of `roles`."""

    async def _check(user: User = Depends(current_active_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed")
        return user

    return _check
