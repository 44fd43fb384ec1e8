import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from .database import Base, utcnow

ORDER_NEW = "new"
ORDER_RESERVED = "reserved"
ORDER_COMPLETED = "completed"
ORDER_CANCELED = "canceled"
ORDER_STATUSES = (ORDER_NEW, ORDER_RESERVED, ORDER_COMPLETED, ORDER_CANCELED)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=ORDER_NEW, index=True)  # new|reserved|completed|canceled
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistory.id",
    )

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "customer": self.customer,
            "status": self.status,
            "items": [it.to_schema for it in self.items],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "status_history": [h.to_schema for h in self.status_history],
        }


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_order_items_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Float, nullable=False)
    price = Column(Float, nullable=False, default=0.0)

    order = relationship("Order", back_populates="items")

    @property
    def to_schema(self):
        return {
            "product_id": self.product_id,
            "quantity": float(self.quantity),
            "price": float(self.price),
        }


class OrderStatusHistory(Base):
    """Append-only log of the statuses an order went through."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    order = relationship("Order", back_populates="status_history")

    @property
    def to_schema(self):
        return {"status": self.status, "changed_at": self.changed_at}
