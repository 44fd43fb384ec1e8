import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from warehouse.core.config import Settings
from warehouse.core.exceptions import BackendError, Conflict, OperationTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceBase:
    """
    Gives services a scoped transaction.

    `_run(fn, ...)` opens a session, calls `fn(session, ...)` inside
    `session.begin()` and commits when it returns. Any exception rolls the
    whole unit back. The unit is bounded by `settings.db_operation_timeout`.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], settings: Settings):
        self._session_maker = session_maker
        self._settings = settings

    async def _run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        async def _unit() -> T:
            async with self._session_maker() as session:
                async with session.begin():
                    return await fn(session, *args, **kwargs)

        try:
            return await asyncio.wait_for(_unit(), timeout=self._settings.db_operation_timeout)
        except asyncio.TimeoutError as e:
            logger.error("%s timed out after %ss", fn.__name__, self._settings.db_operation_timeout)
            raise OperationTimeout(operation=fn.__name__) from e
        except IntegrityError as e:
            raise Conflict("Conflicts with existing data", detail=str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error("%s failed: %r", fn.__name__, e)
            raise BackendError(operation=fn.__name__) from e
