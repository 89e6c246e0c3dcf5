from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from shared.config.database import Base

from .status import OrderStatus, PaymentStatus


def _utcnow():
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Money is fixed at creation time
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(
        Enum(OrderStatus, name="order_status", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )
    payment_method = Column(String(50), nullable=True)
    payment_transaction_id = Column(String(255), nullable=True, index=True)

    # Shipping address snapshot
    shipping_name = Column(String(200), nullable=False, default="")
    shipping_address = Column(String(500), nullable=False, default="")
    shipping_city = Column(String(100), nullable=False, default="")
    shipping_state = Column(String(100), nullable=False, default="")
    shipping_zip_code = Column(String(20), nullable=False, default="")
    shipping_country = Column(String(100), nullable=False, default="")
    shipping_phone = Column(String(50), nullable=True)

    customer_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def shipping_info(self) -> dict:
        return {
            "name": self.shipping_name,
            "address": self.shipping_address,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "zip_code": self.shipping_zip_code,
            "country": self.shipping_country,
            "phone": self.shipping_phone,
        }


class OrderItem(Base):
    """Line snapshot taken at checkout; later product edits do not touch it."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    product_name = Column(String(200), nullable=False)
    product_image_url = Column(String(500), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
