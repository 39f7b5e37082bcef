from decimal import Decimal

from phka.models import FAQ, Order, SupportTicket

TICKET_BODY = {"subject": "Where is my parcel?", "description": "It has been a week.", "category": "order"}


def test_faqs_are_published_and_ordered(client, db):
    db.add(FAQ(question="Second?", answer="B", category="orders", sort_order=2))
    db.add(FAQ(question="First?", answer="A", category="shipping", sort_order=1))
    db.add(FAQ(question="Draft?", answer="C", is_published=False))
    db.commit()

    faqs = client.get("/api/support/faqs").json()["data"]
    assert [f["question"] for f in faqs] == ["First?", "Second?"]
    faqs = client.get("/api/support/faqs", params={"category": "orders"}).json()["data"]
    assert [f["question"] for f in faqs] == ["Second?"]


def test_create_ticket(client, customer_headers):
    res = client.post("/api/support/tickets", json=TICKET_BODY, headers=customer_headers)
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Support ticket created successfully"
    ticket = body["data"]
    assert ticket["ticket_number"].startswith("TKT-")
    assert ticket["ticket_number"].endswith("-000001")
    assert ticket["status"] == "open"
    assert ticket["priority"] == "medium"

    page = client.get("/api/support/tickets", headers=customer_headers).json()["data"]
    assert page["total"] == 1
    page = client.get("/api/support/tickets", params={"status": "closed"}, headers=customer_headers).json()["data"]
    assert page["total"] == 0


def test_ticket_order_must_belong_to_user(client, db, make_user, make_address, customer_headers):
    stranger = make_user(email="stranger@example.com")
    address = make_address(stranger)
    order = Order(
        order_number="ORD-2026-000001",
        user_id=stranger.id,
        subtotal=Decimal("10.00"),
        total_amount=Decimal("16.79"),
        billing_address_id=address.id,
        shipping_address_id=address.id,
    )
    db.add(order)
    db.commit()

    res = client.post("/api/support/tickets", json=dict(TICKET_BODY, order_id=order.id), headers=customer_headers)
    assert res.status_code == 404


def test_ticket_validation(client, customer_headers):
    res = client.post("/api/support/tickets", json=dict(TICKET_BODY, category="complaint"), headers=customer_headers)
    assert res.status_code == 422
    assert "category" in res.json()["errors"]


def test_messages_reopen_resolved_ticket_and_closed_rejects(client, db, customer_headers):
    ticket_id = client.post("/api/support/tickets", json=TICKET_BODY, headers=customer_headers).json()["data"]["id"]

    db.query(SupportTicket).filter(SupportTicket.id == ticket_id).update({"status": "resolved"})
    db.commit()
    res = client.post(
        f"/api/support/tickets/{ticket_id}/messages", json={"message": "Still missing"}, headers=customer_headers
    )
    assert res.status_code == 201
    assert res.json()["message"] == "Message added successfully"

    detail = client.get(f"/api/support/tickets/{ticket_id}", headers=customer_headers).json()["data"]
    assert detail["status"] == "open"
    assert [m["message"] for m in detail["messages"]] == ["Still missing"]

    db.query(SupportTicket).filter(SupportTicket.id == ticket_id).update({"status": "closed"})
    db.commit()
    res = client.post(f"/api/support/tickets/{ticket_id}/messages", json={"message": "Hello?"}, headers=customer_headers)
    assert res.status_code == 400


def test_other_users_ticket_is_hidden(client, customer_headers, make_user, auth_for):
    ticket_id = client.post("/api/support/tickets", json=TICKET_BODY, headers=customer_headers).json()["data"]["id"]
    other = auth_for(make_user(email="other@example.com"))
    assert client.get(f"/api/support/tickets/{ticket_id}", headers=other).status_code == 404
