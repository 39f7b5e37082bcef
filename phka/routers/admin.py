"""
Admin console: order fulfilment, moderation, support desk and role management.
Every route requires an admin; changing roles requires a super admin.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from phka.checkout import add_tracking, cancel_order
from phka.database import get_db, utcnow
from phka.models import CommunityPost, InventoryAudit, Order, Product, ProductReview, SupportMessage, SupportTicket, User
from phka.models.user import ADMIN_ROLES, ROLE_SUPER_ADMIN
from phka.responses import paginate, send_response
from phka.schemas import (
    ModeratePostRequest,
    ModerateReviewRequest,
    OrderStatus,
    OrderStatusRequest,
    TicketPriority,
    TicketStatus,
    UpdateRoleRequest,
    UpdateTicketRequest,
)
from phka.security import require_admin, require_super_admin
from phka.serializers import audit_dict, order_dict, post_dict, review_dict, ticket_dict, user_dict
from phka.utils import money, sanitize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

_STATUS_LABELS = {
    "confirmed": "Order confirmed",
    "processing": "Order is being processed",
    "packed": "Order packed",
    "shipped": "Order shipped",
    "out_for_delivery": "Out for delivery",
    "delivered": "Order delivered",
    "refunded": "Order refunded",
    "failed": "Order failed",
    "pending": "Order pending",
}


def refresh_product_rating(db: Session, product: Product):
    """Keep rating/review_count equal to the product's approved reviews"""
    count, average = (
        db.query(func.count(ProductReview.id), func.avg(ProductReview.rating))
        .filter(ProductReview.product_id == product.id, ProductReview.is_approved.is_(True))
        .one()
    )
    product.review_count = count or 0
    product.rating = money(average or 0)


# ---------- ORDERS ----------
@router.get("/orders")
def list_orders(
    status: Optional[OrderStatus] = None,
    user_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    def _row(order):
        data = order_dict(order, detail=True)
        data["user"] = {"id": order.user.id, "name": order.user.name, "email": order.user.email}
        return data

    return send_response(paginate(query, page, 20, _row))


@router.put("/orders/{order_id}/status")
def update_order_status(
    order_id: int, payload: OrderStatusRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.status == "cancelled":
        raise HTTPException(status_code=400, detail="Cancelled orders cannot change status")

    if payload.tracking_number is not None:
        order.tracking_number = payload.tracking_number
    if payload.carrier is not None:
        order.carrier = payload.carrier

    if payload.status == "cancelled":
        order = cancel_order(db, order, actor=admin.email, description=payload.notes or "Order cancelled by administrator")
        return send_response(order_dict(order, detail=True), "Order status updated successfully")

    now = utcnow()
    order.status = payload.status
    if payload.status == "shipped":
        order.shipped_at = now
    elif payload.status == "delivered":
        order.delivered_at = now
        if order.payment_status == "pending":
            order.payment_status = "paid"
    add_tracking(db, order, _STATUS_LABELS[payload.status], payload.notes)
    db.commit()
    db.refresh(order)
    logger.info("Order %s moved to %s by %s", order.order_number, order.status, admin.email)
    return send_response(order_dict(order, detail=True), "Order status updated successfully")


# ---------- INVENTORY ----------
@router.get("/inventory/audit")
def inventory_audit(
    product_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(InventoryAudit)
    if product_id is not None:
        query = query.filter(InventoryAudit.product_id == product_id)
    query = query.order_by(InventoryAudit.created_at.desc(), InventoryAudit.id.desc())
    return send_response(paginate(query, page, 20, audit_dict))


# ---------- REVIEWS ----------
@router.get("/products/{product_id}/reviews")
def product_reviews(
    product_id: int, page: int = Query(1, ge=1), admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    if not db.get(Product, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    query = (
        db.query(ProductReview)
        .filter(ProductReview.product_id == product_id)
        .order_by(ProductReview.created_at.desc(), ProductReview.id.desc())
    )

    def _row(review):
        data = review_dict(review)
        data["admin_notes"] = review.admin_notes
        data["moderated_by"] = review.moderated_by
        data["moderated_at"] = review.moderated_at
        return data

    return send_response(paginate(query, page, 20, _row))


@router.put("/reviews/{review_id}/moderate")
def moderate_review(
    review_id: int, payload: ModerateReviewRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    review = db.get(ProductReview, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    review.is_approved = payload.is_approved
    review.admin_notes = payload.admin_notes
    review.moderated_by = admin.id
    review.moderated_at = utcnow()
    db.flush()
    refresh_product_rating(db, review.product)
    db.commit()
    db.refresh(review)
    logger.info("Review %s %s by %s", review.id, "approved" if review.is_approved else "rejected", admin.email)
    return send_response(review_dict(review), "Review moderation updated successfully")


# ---------- COMMUNITY ----------
@router.get("/community/posts")
def community_posts(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(CommunityPost)
    if status:
        query = query.filter(CommunityPost.status == status)
    query = query.order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc())
    return send_response(paginate(query, page, 20, post_dict))


@router.put("/community/posts/{post_id}/moderate")
def moderate_post(
    post_id: int, payload: ModeratePostRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    post = db.get(CommunityPost, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if payload.action == "reject":
        post.status = "rejected"
        post.is_published = False
        post.is_featured = False
    else:
        post.status = "approved"
        post.is_published = True
        if payload.action == "feature":
            post.is_featured = True
    db.commit()
    db.refresh(post)
    logger.info("Post %s moderated (%s) by %s", post.id, payload.action, admin.email)
    return send_response(post_dict(post), "Post moderation updated successfully")


# ---------- SUPPORT ----------
@router.get("/support/tickets")
def support_tickets(
    status: Optional[TicketStatus] = None,
    priority: Optional[TicketPriority] = None,
    page: int = Query(1, ge=1),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(SupportTicket)
    if status:
        query = query.filter(SupportTicket.status == status)
    if priority:
        query = query.filter(SupportTicket.priority == priority)
    query = query.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
    return send_response(paginate(query, page, 20, ticket_dict))


@router.put("/support/tickets/{ticket_id}")
def update_ticket(
    ticket_id: int, payload: UpdateTicketRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    ticket = db.get(SupportTicket, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    if payload.assigned_to is not None:
        assignee = db.get(User, payload.assigned_to)
        if not assignee or assignee.role not in ADMIN_ROLES:
            raise HTTPException(status_code=400, detail="Tickets can only be assigned to admins")
        ticket.assigned_to = assignee.id
    if payload.priority:
        ticket.priority = payload.priority
    if payload.resolution is not None:
        ticket.resolution = sanitize_text(payload.resolution)
    if payload.status and payload.status != ticket.status:
        ticket.status = payload.status
        if payload.status == "resolved":
            ticket.resolved_at = utcnow()
        elif payload.status == "closed":
            ticket.closed_at = utcnow()
    if payload.reply:
        db.add(
            SupportMessage(
                ticket_id=ticket.id, user_id=admin.id, message=sanitize_text(payload.reply), is_internal=payload.internal
            )
        )
    db.commit()
    db.refresh(ticket)
    return send_response(ticket_dict(ticket, include_internal=True, with_messages=True), "Ticket updated successfully")


# ---------- USERS (super admin) ----------
@router.put("/users/{user_id}/role")
def update_user_role(
    user_id: int, payload: UpdateRoleRequest, admin: User = Depends(require_super_admin), db: Session = Depends(get_db)
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == admin.id and payload.role != ROLE_SUPER_ADMIN:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    previous = user.role
    user.role = payload.role
    db.commit()
    db.refresh(user)
    logger.info("User %s role changed %s -> %s by %s", user.id, previous, user.role, admin.email)
    return send_response(user_dict(user), "User role updated successfully")
