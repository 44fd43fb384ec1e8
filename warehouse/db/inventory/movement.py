import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, String, Uuid

from ..database import Base, utcnow

MOVEMENT_RECEIPT = "receipt"
MOVEMENT_WRITE_OFF = "write_off"
MOVEMENT_RESERVE = "reserve"
MOVEMENT_TYPES = (MOVEMENT_RECEIPT, MOVEMENT_WRITE_OFF, MOVEMENT_RESERVE)


class StockMovement(Base):
    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(16), nullable=False, index=True)  # receipt|write_off|reserve

    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    supplier_id = Column(Uuid, ForeignKey("suppliers.id"), nullable=True)  # receipts only
    order_id = Column(Uuid, ForeignKey("orders.id"), nullable=True, index=True)  # reservations only

    # Always positive; the sign comes from `type`
    quantity = Column(Float, nullable=False)
    price = Column(Float, nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "type": self.type,
            "product_id": self.product_id,
            "supplier_id": self.supplier_id,
            "order_id": self.order_id,
            "quantity": float(self.quantity),
            "price": float(self.price) if self.price is not None else None,
            "expiry_date": self.expiry_date,
            "created_at": self.created_at,
        }
