from fastapi import Request

from warehouse.services import OrderService, ProductService, WarehouseService


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def get_warehouse_service(request: Request) -> WarehouseService:
    return request.app.state.warehouse_service


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service
