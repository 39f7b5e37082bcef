"""
FAQs and customer support tickets
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from phka.database import get_db
from phka.models import FAQ, Order, SupportMessage, SupportTicket, User
from phka.responses import paginate, send_response
from phka.schemas import CreateTicketRequest, TicketMessageRequest, TicketStatus
from phka.security import get_current_user
from phka.serializers import faq_dict, message_dict, ticket_dict
from phka.utils import next_reference, sanitize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/support", tags=["support"])


def _own_ticket(db: Session, user: User, ticket_id: int) -> SupportTicket:
    ticket = db.query(SupportTicket).filter(SupportTicket.id == ticket_id, SupportTicket.user_id == user.id).first()
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.get("/faqs")
def list_faqs(category: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(FAQ).filter(FAQ.is_published.is_(True))
    if category:
        query = query.filter(FAQ.category == category)
    faqs = query.order_by(FAQ.sort_order.asc(), FAQ.created_at.desc()).all()
    return send_response([faq_dict(f) for f in faqs])


@router.get("/tickets")
def list_tickets(
    status: Optional[TicketStatus] = None,
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(SupportTicket).filter(SupportTicket.user_id == user.id)
    if status:
        query = query.filter(SupportTicket.status == status)
    query = query.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
    return send_response(paginate(query, page, 20, ticket_dict))


@router.post("/tickets", status_code=201)
def create_ticket(payload: CreateTicketRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if payload.order_id is not None:
        order = db.query(Order).filter(Order.id == payload.order_id, Order.user_id == user.id).first()
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
    ticket = SupportTicket(
        ticket_number=next_reference(db, SupportTicket.ticket_number, "TKT"),
        user_id=user.id,
        order_id=payload.order_id,
        subject=sanitize_text(payload.subject),
        description=sanitize_text(payload.description),
        priority=payload.priority,
        category=payload.category,
        status="open",
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    logger.info("Support ticket %s opened by user %s", ticket.ticket_number, user.id)
    return send_response(ticket_dict(ticket), "Support ticket created successfully", status_code=201)


@router.get("/tickets/{ticket_id}")
def show_ticket(ticket_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    ticket = _own_ticket(db, user, ticket_id)
    return send_response(ticket_dict(ticket, with_messages=True))


@router.post("/tickets/{ticket_id}/messages", status_code=201)
def add_message(
    ticket_id: int, payload: TicketMessageRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    ticket = _own_ticket(db, user, ticket_id)
    if ticket.status == "closed":
        raise HTTPException(status_code=400, detail="Cannot add messages to a closed ticket")
    message = SupportMessage(ticket_id=ticket.id, user_id=user.id, message=sanitize_text(payload.message))
    db.add(message)
    if ticket.status == "resolved":
        ticket.status = "open"
        ticket.resolved_at = None
    db.commit()
    db.refresh(message)
    return send_response(message_dict(message), "Message added successfully", status_code=201)
