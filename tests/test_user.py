from decimal import Decimal

from phka.models import Address, Order, ProductReview, Wishlist

ADDRESS_BODY = {
    "type": "shipping",
    "first_name": "Jane",
    "last_name": "Doe",
    "address_line_1": "22 Lotus Road",
    "city": "Phnom Penh",
    "state": "PP",
    "postal_code": "12000",
    "country": "kh",
}


def test_current_user_and_profile(client, db, customer, product, customer_headers):
    db.add(ProductReview(product_id=product.id, user_id=customer.id, rating=4, is_approved=True))
    db.commit()

    data = client.get("/api/user", headers=customer_headers).json()["data"]
    assert data["user"]["email"] == customer.email
    assert data["stats"]["total_reviews"] == 1

    profile = client.get("/api/user/profile", headers=customer_headers).json()["data"]
    assert len(profile["user"]["reviews"]) == 1
    assert profile["user"]["orders"] == []

    res = client.put("/api/user/profile", json={"phone": "+85512345678"}, headers=customer_headers)
    assert res.status_code == 200
    assert res.json()["data"]["user"]["phone"] == "+85512345678"


def test_address_crud(client, customer_headers):
    res = client.post("/api/user/addresses", json=dict(ADDRESS_BODY, is_default=True), headers=customer_headers)
    assert res.status_code == 201
    address = res.json()["data"]
    assert address["country"] == "KH"
    assert address["full_name"] == "Jane Doe"

    res = client.put(f"/api/user/addresses/{address['id']}", json={"city": "Siem Reap"}, headers=customer_headers)
    assert res.json()["data"]["city"] == "Siem Reap"

    listed = client.get("/api/user/addresses", headers=customer_headers).json()["data"]
    assert [a["id"] for a in listed] == [address["id"]]

    res = client.delete(f"/api/user/addresses/{address['id']}", headers=customer_headers)
    assert res.status_code == 200
    assert client.get("/api/user/addresses", headers=customer_headers).json()["data"] == []


def test_only_one_default_address_per_type(client, db, customer, customer_headers):
    first = client.post("/api/user/addresses", json=dict(ADDRESS_BODY, is_default=True), headers=customer_headers)
    second = client.post("/api/user/addresses", json=dict(ADDRESS_BODY, is_default=True), headers=customer_headers)
    first_id, second_id = first.json()["data"]["id"], second.json()["data"]["id"]

    db.expire_all()
    defaults = db.query(Address).filter(Address.user_id == customer.id, Address.is_default.is_(True)).all()
    assert [a.id for a in defaults] == [second_id]

    client.put(f"/api/user/addresses/{first_id}", json={"is_default": True}, headers=customer_headers)
    db.expire_all()
    defaults = db.query(Address).filter(Address.user_id == customer.id, Address.is_default.is_(True)).all()
    assert [a.id for a in defaults] == [first_id]


def test_address_validation_and_ownership(client, make_user, make_address, customer_headers):
    res = client.post("/api/user/addresses", json=dict(ADDRESS_BODY, country="KHM"), headers=customer_headers)
    assert res.status_code == 422
    assert "country" in res.json()["errors"]

    foreign = make_address(make_user(email="else@example.com"))
    assert client.put(f"/api/user/addresses/{foreign.id}", json={"city": "X"}, headers=customer_headers).status_code == 404
    assert client.delete(f"/api/user/addresses/{foreign.id}", headers=customer_headers).status_code == 404


def test_address_used_by_order_cannot_be_deleted(client, db, customer, address, customer_headers):
    db.add(
        Order(
            order_number="ORD-2026-000001",
            user_id=customer.id,
            subtotal=Decimal("10.00"),
            total_amount=Decimal("16.79"),
            billing_address_id=address.id,
            shipping_address_id=address.id,
        )
    )
    db.commit()
    res = client.delete(f"/api/user/addresses/{address.id}", headers=customer_headers)
    assert res.status_code == 400


def test_wishlist(client, db, product, customer_headers):
    res = client.post("/api/user/wishlist", json={"product_id": product.id}, headers=customer_headers)
    assert res.status_code == 200
    assert res.json()["message"] == "Product added to wishlist"

    dup = client.post("/api/user/wishlist", json={"product_id": product.id}, headers=customer_headers)
    assert dup.status_code == 400
    assert dup.json()["message"] == "Product already in wishlist"

    missing = client.post("/api/user/wishlist", json={"product_id": 999}, headers=customer_headers)
    assert missing.status_code == 404

    listed = client.get("/api/user/wishlist", headers=customer_headers).json()["data"]
    assert [w["product"]["id"] for w in listed] == [product.id]

    assert client.delete(f"/api/user/wishlist/{product.id}", headers=customer_headers).status_code == 200
    assert db.query(Wishlist).count() == 0
    gone = client.delete(f"/api/user/wishlist/{product.id}", headers=customer_headers)
    assert gone.status_code == 404
    assert gone.json()["message"] == "Product not in wishlist"


def test_recently_viewed(client, make_product, customer_headers):
    first = make_product(name="First")
    second = make_product(name="Second")
    client.get(f"/api/products/{first.id}", headers=customer_headers)
    client.get(f"/api/products/{second.id}", headers=customer_headers)
    client.get(f"/api/products/{first.id}", headers=customer_headers)

    data = client.get("/api/user/recently-viewed", headers=customer_headers).json()["data"]
    assert len(data) == 2
    assert {d["product"]["id"] for d in data} == {first.id, second.id}


def test_stats(client, db, customer, address, product, customer_headers):
    for number, status in (("ORD-2026-000001", "paid"), ("ORD-2026-000002", "pending")):
        db.add(
            Order(
                order_number=number,
                user_id=customer.id,
                subtotal=Decimal("40.00"),
                total_amount=Decimal("49.19"),
                payment_status=status,
                billing_address_id=address.id,
                shipping_address_id=address.id,
            )
        )
    db.add(ProductReview(product_id=product.id, user_id=customer.id, rating=4, is_approved=True))
    db.commit()

    data = client.get("/api/user/stats", headers=customer_headers).json()["data"]
    assert data["total_orders"] == 2
    assert data["total_spent"] == 49.19
    assert data["average_rating"] == 4.0
    assert data["wishlist_count"] == 0
    assert data["member_since"]
