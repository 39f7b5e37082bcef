"""
Order, OrderItem, OrderTracking and InventoryAudit models
"""
from sqlalchemy import DECIMAL, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from phka.database import Base, utcnow

ORDER_STATUSES = (
    "pending",
    "confirmed",
    "processing",
    "packed",
    "shipped",
    "out_for_delivery",
    "delivered",
    "cancelled",
    "refunded",
    "failed",
)
CANCELLABLE_STATUSES = ("pending", "processing")
PAYMENT_METHODS = ("credit_card", "debit_card", "paypal", "bank_transfer", "cash_on_delivery")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    subtotal = Column(DECIMAL(10, 2), nullable=False)
    tax_amount = Column(DECIMAL(10, 2), nullable=False, default=0)
    shipping_amount = Column(DECIMAL(10, 2), nullable=False, default=0)
    discount_amount = Column(DECIMAL(10, 2), nullable=False, default=0)
    total_amount = Column(DECIMAL(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    billing_address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)
    shipping_address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)
    payment_method = Column(String(50))
    payment_status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text)
    tracking_number = Column(String(100))
    carrier = Column(String(100))
    ordered_at = Column(DateTime, default=utcnow)
    shipped_at = Column(DateTime)
    delivered_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    billing_address = relationship("Address", foreign_keys=[billing_address_id])
    shipping_address = relationship("Address", foreign_keys=[shipping_address_id])
    tracking = relationship(
        "OrderTracking", back_populates="order", cascade="all, delete-orphan", order_by="OrderTracking.id"
    )

    def __repr__(self):
        return f"<Order(id={self.id}, number={self.order_number}, total={self.total_amount}, status={self.status})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="SET NULL"))
    product_name = Column(String(255), nullable=False)
    variant_name = Column(String(255))
    sku = Column(String(100))
    quantity = Column(Integer, nullable=False)
    unit_price = Column(DECIMAL(10, 2), nullable=False)
    total_price = Column(DECIMAL(10, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    variant = relationship("ProductVariant")

    def __repr__(self):
        return f"<OrderItem(id={self.id}, quantity={self.quantity}, unit_price={self.unit_price})>"


class OrderTracking(Base):
    __tablename__ = "order_tracking"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(100), nullable=False)
    description = Column(Text)
    location = Column(String(255))
    carrier = Column(String(100))
    tracking_number = Column(String(100))
    tracked_at = Column(DateTime, default=utcnow)

    order = relationship("Order", back_populates="tracking")

    def __repr__(self):
        return f"<OrderTracking(order_id={self.order_id}, status={self.status})>"


class InventoryAudit(Base):
    """Signed stock movement written next to every stock change"""

    __tablename__ = "inventory_audit"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="SET NULL"))
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"))
    change = Column(Integer, nullable=False)
    note = Column(String(255))
    performed_by = Column(String(255), nullable=False, default="system")
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<InventoryAudit(product_id={self.product_id}, change={self.change}, note={self.note})>"
