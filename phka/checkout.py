"""
Cart -> order transition and its inverse.

place_order and cancel_order each run in a single transaction. Stock is
decremented with a guarded UPDATE (`stock_quantity >= qty`) so a concurrent
checkout that drains the same stock loses cleanly instead of going negative.
Every stock movement writes an inventory_audit row.
"""
import logging
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.orm import Session

from phka.config import FREE_SHIPPING_THRESHOLD, SHIPPING_FLAT_RATE, TAX_RATE
from phka.database import utcnow
from phka.models import (
    Address,
    CartItem,
    InventoryAudit,
    Order,
    OrderItem,
    OrderTracking,
    Product,
    ProductVariant,
    ShoppingCart,
    User,
)
from phka.utils import money, next_reference

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Some items in your cart are no longer available"


class InsufficientStock(Exception):
    """A guarded decrement matched no row"""

    def __init__(self, item: CartItem):
        super().__init__(item.id)
        self.item = item


# ---------- Cart helpers ----------
def get_cart(db: Session, user: User, create: bool = False) -> Optional[ShoppingCart]:
    cart = db.query(ShoppingCart).filter(ShoppingCart.user_id == user.id).first()
    if cart is None and create:
        cart = ShoppingCart(user_id=user.id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _stock_issue(item: CartItem) -> dict:
    if item.variant:
        name = item.variant.name
        label = "Variant"
    else:
        name = item.product.name
        label = "Product"
    return {
        "item_id": item.id,
        "product_id": item.product_id,
        "variant_id": item.product_variant_id,
        "type": "insufficient_stock",
        "message": f'{label} "{name}" has insufficient stock',
    }


def validate_cart_items(cart: ShoppingCart) -> dict:
    """Report every line that cannot be fulfilled right now"""
    issues = []
    for item in cart.items:
        product = item.product
        if not product.is_active:
            issues.append(
                {
                    "item_id": item.id,
                    "product_id": item.product_id,
                    "variant_id": item.product_variant_id,
                    "type": "product_inactive",
                    "message": f'Product "{product.name}" is no longer available',
                }
            )
        if item.variant:
            # an inactive variant is reported as out of stock
            if not item.variant.is_active or item.variant.stock_quantity < item.quantity:
                issues.append(_stock_issue(item))
        elif product.stock_quantity < item.quantity:
            issues.append(_stock_issue(item))
    return {"valid": not issues, "issues": issues}


def compute_totals(subtotal) -> dict:
    subtotal = money(subtotal)
    tax = money(subtotal * TAX_RATE)
    shipping = Decimal("0.00") if subtotal > FREE_SHIPPING_THRESHOLD else money(SHIPPING_FLAT_RATE)
    return {
        "subtotal": subtotal,
        "tax_amount": tax,
        "shipping_amount": shipping,
        "total_amount": money(subtotal + tax + shipping),
    }


# ---------- Stock movements ----------
def _apply_stock_change(db: Session, product_id: int, variant_id: Optional[int], change: int) -> bool:
    model = ProductVariant if variant_id else Product
    target_id = variant_id or product_id
    stmt = update(model).where(model.id == target_id)
    if change < 0:
        stmt = stmt.where(model.stock_quantity >= -change)
    # loaded rows are refreshed after commit
    stmt = stmt.values(stock_quantity=model.stock_quantity + change).execution_options(synchronize_session=False)
    return db.execute(stmt).rowcount == 1


def _audit(db: Session, product_id, variant_id, order_id, change: int, note: str, actor: str):
    db.add(
        InventoryAudit(
            product_id=product_id,
            product_variant_id=variant_id,
            order_id=order_id,
            change=change,
            note=note,
            performed_by=actor,
        )
    )
    logger.info("Inventory audit: product %s variant %s change %+d (%s)", product_id, variant_id, change, note)


def add_tracking(db: Session, order: Order, status: str, description: Optional[str] = None, **extra) -> OrderTracking:
    entry = OrderTracking(
        order_id=order.id,
        status=status,
        description=description,
        carrier=extra.get("carrier") or order.carrier,
        tracking_number=extra.get("tracking_number") or order.tracking_number,
        location=extra.get("location"),
    )
    db.add(entry)
    return entry


# ---------- Checkout ----------
def owned_address(db: Session, user: User, address_id: int, label: str) -> Address:
    address = db.query(Address).filter(Address.id == address_id, Address.user_id == user.id).first()
    if not address:
        raise HTTPException(status_code=404, detail=f"{label} address not found")
    return address


def place_order(db: Session, user: User, payload) -> Order:
    """
    Turn the user's cart into a pending order.

    Raises 400 for an empty or unfulfillable cart, 500 when the transaction
    fails for any other reason. The cart is only emptied when the order commits.
    """
    owned_address(db, user, payload.billing_address_id, "Billing")
    owned_address(db, user, payload.shipping_address_id, "Shipping")

    cart = get_cart(db, user)
    if not cart or not cart.items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    result = validate_cart_items(cart)
    if not result["valid"]:
        raise HTTPException(status_code=400, detail={"message": UNAVAILABLE_MESSAGE, "data": result})

    try:
        lines = list(cart.items)
        totals = compute_totals(sum((item.line_total for item in lines), Decimal("0")))
        order = Order(
            order_number=next_reference(db, Order.order_number, "ORD"),
            user_id=user.id,
            status="pending",
            billing_address_id=payload.billing_address_id,
            shipping_address_id=payload.shipping_address_id,
            payment_method=payload.payment_method,
            payment_status="pending",
            notes=payload.notes,
            **totals,
        )
        db.add(order)
        db.flush()

        for item in lines:
            variant = item.variant
            db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=item.product_id,
                    product_variant_id=item.product_variant_id,
                    product_name=item.product.name,
                    variant_name=variant.name if variant else None,
                    sku=variant.sku if variant else item.product.sku,
                    quantity=item.quantity,
                    unit_price=money(item.unit_price),
                    total_price=money(item.line_total),
                )
            )
            if not _apply_stock_change(db, item.product_id, item.product_variant_id, -item.quantity):
                raise InsufficientStock(item)
            _audit(db, item.product_id, item.product_variant_id, order.id, -item.quantity, "Order checkout", user.email)

        add_tracking(db, order, "Order placed", f"Order {order.order_number} has been placed")
        cart.items.clear()
        db.commit()
    except InsufficientStock as exc:
        issue = _stock_issue(exc.item)
        db.rollback()
        logger.warning("Checkout for user %s lost a stock race on cart item %s", user.id, issue["item_id"])
        raise HTTPException(
            status_code=400,
            detail={"message": UNAVAILABLE_MESSAGE, "data": {"valid": False, "issues": [issue]}},
        )
    except Exception:
        db.rollback()
        logger.exception("Failed to create order for user %s", user.id)
        raise HTTPException(status_code=500, detail="Failed to create order")

    db.refresh(order)
    logger.info("Order %s placed by user %s total %s", order.order_number, user.id, order.total_amount)
    return order


def cancel_order(db: Session, order: Order, actor: str, description: str = "Order cancelled by customer") -> Order:
    """Restore the stock taken by `order` and mark it cancelled, in one transaction"""
    try:
        for item in order.items:
            variant_id = item.product_variant_id
            _apply_stock_change(db, item.product_id, variant_id, item.quantity)
            _audit(db, item.product_id, variant_id, order.id, item.quantity, "Order cancelled", actor)
        order.status = "cancelled"
        order.cancelled_at = utcnow()
        add_tracking(db, order, "Order cancelled", description)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to cancel order %s", order.id)
        raise HTTPException(status_code=500, detail="Failed to cancel order")

    db.refresh(order)
    logger.info("Order %s cancelled by %s", order.order_number, actor)
    return order
