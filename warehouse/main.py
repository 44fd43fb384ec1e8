import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from warehouse.core.auth import auth_backend, fastapi_users
from warehouse.core.config import Settings
from warehouse.core.exceptions import WarehouseError
from warehouse.db.database import create_db_and_tables, create_engine, create_session_maker
from warehouse.routers.categories import router as categories_router
from warehouse.routers.orders import router as orders_router
from warehouse.routers.products import router as products_router
from warehouse.routers.suppliers import router as suppliers_router
from warehouse.routers.warehouse import router as warehouse_router
from warehouse.schemas.users import UserCreate, UserRead, UserUpdate
from warehouse.services import OrderService, ProductService, SqlProductStore, WarehouseService

logger = logging.getLogger("warehouse")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    engine = create_engine(settings)
    session_maker = create_session_maker(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_db_and_tables(engine)
        logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
        yield
        await engine.dispose()

    app = FastAPI(
        title="Warehouse Management API",
        description="Products, suppliers, stock ledger and order reservations",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    products = SqlProductStore()
    warehouse_service = WarehouseService(session_maker, settings, products=products)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.product_service = ProductService(session_maker, settings, store=products)
    app.state.warehouse_service = warehouse_service
    app.state.order_service = OrderService(session_maker, settings, warehouse_service, products=products)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        client = request.client.host if request.client else "-"
        logger.info(
            "%s %s %s %s (%.1f ms)",
            client, request.method, request.url.path, response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    @app.exception_handler(WarehouseError)
    async def _warehouse_exc(_req: Request, exc: WarehouseError):
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.code, exc.message, exc_info=exc)
        body = exc.as_dict()
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": body["message"], "code": body["code"], "data": body["data"]},
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(_req: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(HTTPException)
    async def _http_exc(_req: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled_exc(_req: Request, exc: Exception):
        logger.exception("UNHANDLED_EXC: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "INTERNAL_ERROR"})

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    # Authentication routes (fastapi-users)
    app.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/api/auth/jwt", tags=["auth"])
    app.include_router(fastapi_users.get_register_router(UserRead, UserCreate), prefix="/api/auth", tags=["auth"])
    app.include_router(fastapi_users.get_users_router(UserRead, UserUpdate), prefix="/api/users", tags=["users"])

    app.include_router(categories_router, prefix="/api/categories", tags=["categories"])
    app.include_router(suppliers_router, prefix="/api/suppliers", tags=["suppliers"])
    app.include_router(products_router, prefix="/api/products", tags=["products"])
    app.include_router(warehouse_router, prefix="/api/warehouse", tags=["warehouse"])
    app.include_router(orders_router, prefix="/api/orders", tags=["orders"])

    return app


def main():
    uvicorn.run("warehouse.main:create_app", factory=True, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
