"""
Checkout and the customer's own orders
"""
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from phka.checkout import cancel_order, place_order
from phka.config import CHECKOUT_RATE_LIMIT, ESTIMATED_DELIVERY_DAYS, RATE_LIMIT_WINDOW
from phka.database import get_db
from phka.models import Order, User
from phka.models.order import CANCELLABLE_STATUSES
from phka.responses import paginate, send_response
from phka.schemas import CreateOrderRequest
from phka.security import get_current_user, rate_limit
from phka.serializers import order_dict, tracking_dict

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _own_order(db: Session, user: User, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user.id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("")
def list_orders(page: int = Query(1, ge=1), user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = db.query(Order).filter(Order.user_id == user.id).order_by(Order.created_at.desc(), Order.id.desc())
    return send_response(paginate(query, page, 10, order_dict))


@router.post("", status_code=201)
@rate_limit(limit=CHECKOUT_RATE_LIMIT, window=RATE_LIMIT_WINDOW, key="checkout")
def create_order(
    request: Request,
    payload: CreateOrderRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = place_order(db, user, payload)
    return send_response(order_dict(order, detail=True), "Order created successfully", status_code=201)


@router.get("/{order_id}")
def show_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return send_response(order_dict(_own_order(db, user, order_id), detail=True))


@router.post("/{order_id}/cancel")
def cancel(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = (
        db.query(Order)
        .filter(Order.id == order_id, Order.user_id == user.id, Order.status.in_(CANCELLABLE_STATUSES))
        .first()
    )
    if not order:
        raise HTTPException(status_code=404, detail="Order not found or cannot be cancelled")
    order = cancel_order(db, order, actor=user.email)
    return send_response(order_dict(order, detail=True), "Order cancelled successfully")


@router.get("/{order_id}/tracking")
def tracking(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = _own_order(db, user, order_id)
    estimated = order.shipped_at + timedelta(days=ESTIMATED_DELIVERY_DAYS) if order.shipped_at else None
    return send_response(
        {
            "order_number": order.order_number,
            "status": order.status,
            "tracking_number": order.tracking_number,
            "carrier": order.carrier,
            "shipped_at": order.shipped_at,
            "delivered_at": order.delivered_at,
            "estimated_delivery": estimated,
            "history": [tracking_dict(t) for t in order.tracking],
        }
    )
