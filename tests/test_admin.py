import pytest

from phka.models import CommunityPost, InventoryAudit, Product, ProductReview, SupportTicket, User


@pytest.fixture
def placed_order(client, product, address, customer_headers):
    client.post("/api/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers)
    res = client.post(
        "/api/orders",
        json={"billing_address_id": address.id, "shipping_address_id": address.id, "payment_method": "cash_on_delivery"},
        headers=customer_headers,
    )
    assert res.status_code == 201
    return res.json()["data"]


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/admin/orders"),
        ("get", "/api/admin/inventory/audit"),
        ("get", "/api/admin/community/posts"),
        ("get", "/api/admin/support/tickets"),
    ],
)
def test_admin_routes_reject_customers(client, customer_headers, method, path):
    res = getattr(client, method)(path, headers=customer_headers)
    assert res.status_code == 403
    assert res.json() == {"success": False, "message": "Access denied. Admin privileges required."}


def test_admin_routes_require_token(client):
    assert client.get("/api/admin/orders").status_code == 401


def test_list_orders_with_filters(client, placed_order, admin_headers, customer):
    page = client.get("/api/admin/orders", headers=admin_headers).json()["data"]
    assert page["total"] == 1
    assert page["items"][0]["user"]["email"] == customer.email

    page = client.get("/api/admin/orders", params={"status": "shipped"}, headers=admin_headers).json()["data"]
    assert page["total"] == 0
    page = client.get("/api/admin/orders", params={"user_id": customer.id}, headers=admin_headers).json()["data"]
    assert page["total"] == 1


def test_ship_and_deliver_order(client, placed_order, admin_headers, customer_headers):
    order_id = placed_order["id"]
    res = client.put(
        f"/api/admin/orders/{order_id}/status",
        json={"status": "shipped", "tracking_number": "1Z999", "carrier": "DHL"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "shipped"
    assert data["shipped_at"] is not None
    assert data["tracking_number"] == "1Z999"

    tracking = client.get(f"/api/orders/{order_id}/tracking", headers=customer_headers).json()["data"]
    assert tracking["estimated_delivery"] is not None
    assert [h["status"] for h in tracking["history"]] == ["Order placed", "Order shipped"]
    assert tracking["history"][1]["carrier"] == "DHL"

    delivered = client.put(
        f"/api/admin/orders/{order_id}/status", json={"status": "delivered"}, headers=admin_headers
    ).json()["data"]
    assert delivered["delivered_at"] is not None
    assert delivered["payment_status"] == "paid"


def test_admin_cancel_restores_stock_and_locks_status(client, db, product, placed_order, admin, admin_headers):
    order_id = placed_order["id"]
    res = client.put(f"/api/admin/orders/{order_id}/status", json={"status": "cancelled"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "cancelled"

    db.expire_all()
    assert db.get(Product, product.id).stock_quantity == 10
    restore = db.query(InventoryAudit).filter(InventoryAudit.note == "Order cancelled").one()
    assert restore.performed_by == admin.email

    again = client.put(f"/api/admin/orders/{order_id}/status", json={"status": "processing"}, headers=admin_headers)
    assert again.status_code == 400


def test_status_update_validation(client, placed_order, admin_headers):
    res = client.put(
        f"/api/admin/orders/{placed_order['id']}/status", json={"status": "teleported"}, headers=admin_headers
    )
    assert res.status_code == 422
    assert client.put("/api/admin/orders/999/status", json={"status": "shipped"}, headers=admin_headers).status_code == 404


def test_inventory_audit_listing(client, make_product, placed_order, product, admin_headers):
    page = client.get("/api/admin/inventory/audit", headers=admin_headers).json()["data"]
    assert page["total"] == 1
    assert page["items"][0]["change"] == -2
    assert page["items"][0]["order_id"] == placed_order["id"]

    other = make_product(name="Untouched")
    page = client.get("/api/admin/inventory/audit", params={"product_id": other.id}, headers=admin_headers).json()
    assert page["data"]["total"] == 0


def test_review_moderation_updates_product_rating(client, db, product, customer, make_user, admin, admin_headers):
    other = make_user(email="second@example.com")
    first = ProductReview(product_id=product.id, user_id=customer.id, rating=5)
    second = ProductReview(product_id=product.id, user_id=other.id, rating=2)
    db.add_all([first, second])
    db.commit()

    listing = client.get(f"/api/admin/products/{product.id}/reviews", headers=admin_headers).json()["data"]
    assert listing["total"] == 2

    client.put(f"/api/admin/reviews/{first.id}/moderate", json={"is_approved": True}, headers=admin_headers)
    res = client.put(
        f"/api/admin/reviews/{second.id}/moderate",
        json={"is_approved": True, "admin_notes": "ok"},
        headers=admin_headers,
    )
    assert res.status_code == 200

    db.expire_all()
    refreshed = db.get(Product, product.id)
    assert refreshed.review_count == 2
    assert float(refreshed.rating) == 3.5
    assert db.get(ProductReview, second.id).moderated_by == admin.id

    client.put(f"/api/admin/reviews/{second.id}/moderate", json={"is_approved": False}, headers=admin_headers)
    db.expire_all()
    refreshed = db.get(Product, product.id)
    assert refreshed.review_count == 1
    assert float(refreshed.rating) == 5.0

    public = client.get(f"/api/products/{product.id}/reviews").json()["data"]
    assert public["total"] == 1


def test_post_moderation(client, db, customer, admin_headers):
    post = CommunityPost(user_id=customer.id, content="Look at my haul")
    db.add(post)
    db.commit()

    res = client.put(f"/api/admin/community/posts/{post.id}/moderate", json={"action": "reject"}, headers=admin_headers)
    assert res.json()["data"]["status"] == "rejected"
    assert client.get("/api/community/posts").json()["data"]["total"] == 0

    page = client.get("/api/admin/community/posts", params={"status": "rejected"}, headers=admin_headers).json()["data"]
    assert page["total"] == 1

    res = client.put(f"/api/admin/community/posts/{post.id}/moderate", json={"action": "feature"}, headers=admin_headers)
    data = res.json()["data"]
    assert data["status"] == "approved"
    assert data["is_featured"] is True
    assert client.get("/api/community/posts").json()["data"]["total"] == 1

    bad = client.put(f"/api/admin/community/posts/{post.id}/moderate", json={"action": "burn"}, headers=admin_headers)
    assert bad.status_code == 422


def test_ticket_management(client, db, admin, customer, customer_headers, admin_headers):
    ticket_id = client.post(
        "/api/support/tickets",
        json={"subject": "Broken lid", "description": "Arrived cracked", "category": "product", "priority": "high"},
        headers=customer_headers,
    ).json()["data"]["id"]

    page = client.get("/api/admin/support/tickets", params={"priority": "high"}, headers=admin_headers).json()["data"]
    assert page["total"] == 1

    res = client.put(
        f"/api/admin/support/tickets/{ticket_id}",
        json={"status": "in_progress", "assigned_to": admin.id, "reply": "Checking with the warehouse", "internal": True},
        headers=admin_headers,
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["assigned_to"] == admin.id
    assert data["messages"][0]["is_internal"] is True

    customer_view = client.get(f"/api/support/tickets/{ticket_id}", headers=customer_headers).json()["data"]
    assert customer_view["messages"] == []

    res = client.put(
        f"/api/admin/support/tickets/{ticket_id}",
        json={"status": "resolved", "resolution": "Replacement sent"},
        headers=admin_headers,
    )
    assert res.json()["data"]["resolved_at"] is not None

    res = client.put(f"/api/admin/support/tickets/{ticket_id}", json={"assigned_to": customer.id}, headers=admin_headers)
    assert res.status_code == 400
    db.expire_all()
    assert db.get(SupportTicket, ticket_id).assigned_to == admin.id


def test_role_changes_need_super_admin(client, db, customer, admin_headers, super_admin, super_admin_headers):
    res = client.put(f"/api/admin/users/{customer.id}/role", json={"role": "admin"}, headers=admin_headers)
    assert res.status_code == 403

    res = client.put(f"/api/admin/users/{customer.id}/role", json={"role": "admin"}, headers=super_admin_headers)
    assert res.status_code == 200
    assert res.json()["data"]["role"] == "admin"

    res = client.put(f"/api/admin/users/{super_admin.id}/role", json={"role": "customer"}, headers=super_admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "You cannot change your own role"
    db.expire_all()
    assert db.get(User, super_admin.id).role == "super_admin"
