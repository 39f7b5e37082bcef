from decimal import Decimal

from phka.models import ProductReview, ProductVariant, RecentlyViewed, Store


def test_list_products_hides_inactive_and_out_of_stock(client, make_product):
    make_product(name="Rose Serum")
    make_product(name="Sold Out Balm", stock=0)
    make_product(name="Retired Toner", is_active=False)

    res = client.get("/api/products")
    assert res.status_code == 200
    page = res.json()["data"]
    assert page["total"] == 1
    assert [p["name"] for p in page["items"]] == ["Rose Serum"]


def test_list_products_filters_and_sorting(client, make_product):
    make_product(name="Cheap Cleanser", price="8.00", skin_types=["oily"])
    make_product(name="Mid Cream", price="25.00", skin_types=["dry"])
    make_product(name="Luxe Oil", price="60.00", skin_types=["dry", "sensitive"])

    res = client.get("/api/products", params={"sort_by": "price", "sort_order": "asc"})
    assert [p["name"] for p in res.json()["data"]["items"]] == ["Cheap Cleanser", "Mid Cream", "Luxe Oil"]

    res = client.get("/api/products", params={"min_price": 10, "max_price": 50})
    assert [p["name"] for p in res.json()["data"]["items"]] == ["Mid Cream"]

    res = client.get("/api/products", params={"skin_type": "dry", "sort_by": "name", "sort_order": "asc"})
    assert [p["name"] for p in res.json()["data"]["items"]] == ["Luxe Oil", "Mid Cream"]

    res = client.get("/api/products", params={"search": "cream"})
    assert [p["name"] for p in res.json()["data"]["items"]] == ["Mid Cream"]


def test_pagination_metadata(client, make_product):
    for i in range(3):
        make_product(name=f"Lip Tint {i}")
    page = client.get("/api/products", params={"per_page": 2, "page": 2}).json()["data"]
    assert page["total"] == 3
    assert page["per_page"] == 2
    assert page["page"] == 2
    assert page["last_page"] == 2
    assert len(page["items"]) == 1


def test_sale_price_is_current_price(client, make_product):
    product = make_product(price="30.00", sale_price="24.50")
    data = client.get(f"/api/products/{product.id}").json()["data"]
    assert data["current_price"] == 24.5
    assert data["is_on_sale"] is True


def test_featured_and_search(client, make_product):
    make_product(name="Star Serum", is_featured=True)
    make_product(name="Plain Soap")
    featured = client.get("/api/products/featured").json()["data"]
    assert [p["name"] for p in featured] == ["Star Serum"]

    found = client.get("/api/products/search", params={"q": "soap"}).json()["data"]
    assert [p["name"] for p in found] == ["Plain Soap"]

    res = client.get("/api/products/search", params={"q": "  "})
    assert res.status_code == 400
    assert res.json()["message"] == "Search query is required"


def test_show_product_counts_views_and_records_recently_viewed(client, db, product, customer, customer_headers):
    client.get(f"/api/products/{product.id}")
    res = client.get(f"/api/products/{product.id}", headers=customer_headers)
    assert res.status_code == 200
    assert res.json()["data"]["view_count"] == 2
    assert db.query(RecentlyViewed).filter(RecentlyViewed.user_id == customer.id).count() == 1


def test_show_product_ignores_bad_token(client, product):
    res = client.get(f"/api/products/{product.id}", headers={"Authorization": "Bearer garbage"})
    assert res.status_code == 200


def test_show_missing_product(client):
    res = client.get("/api/products/999")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Product not found"}


def test_variants_sorted_by_price(client, db, product, variant):
    db.add(ProductVariant(product_id=product.id, name="Mini", sku="SKU-VAR-2", price=Decimal("6.00"), stock_quantity=3))
    db.add(ProductVariant(product_id=product.id, name="Hidden", sku="SKU-VAR-3", stock_quantity=3, is_active=False))
    db.commit()
    data = client.get(f"/api/products/{product.id}/variants").json()["data"]
    assert [v["name"] for v in data] == ["Mini", "Travel size"]


def test_reviews_only_show_approved(client, db, product, customer, make_user):
    other = make_user(email="other@example.com")
    db.add(ProductReview(product_id=product.id, user_id=customer.id, rating=5, comment="Love it", is_approved=True))
    db.add(ProductReview(product_id=product.id, user_id=other.id, rating=1, comment="Spam", is_approved=False))
    db.commit()

    page = client.get(f"/api/products/{product.id}/reviews").json()["data"]
    assert page["total"] == 1
    assert page["items"][0]["comment"] == "Love it"


def test_submit_review(client, db, product, customer_headers):
    res = client.post(
        f"/api/products/{product.id}/reviews",
        json={"rating": 4, "title": "<b>Nice</b>", "comment": "Soft <script>x</script>skin"},
        headers=customer_headers,
    )
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["is_approved"] is False
    assert data["title"] == "Nice"
    assert "<script>" not in data["comment"]

    again = client.post(f"/api/products/{product.id}/reviews", json={"rating": 5}, headers=customer_headers)
    assert again.status_code == 400

    bad = client.post(f"/api/products/{product.id}/reviews", json={"rating": 6}, headers=customer_headers)
    assert bad.status_code == 422
    assert "rating" in bad.json()["errors"]


def test_similar_products(client, make_product):
    main = make_product(name="Serum A")
    make_product(name="Serum B")
    data = client.get(f"/api/products/{main.id}/similar").json()["data"]
    assert [p["name"] for p in data] == ["Serum B"]


def test_categories_with_counts(client, category, make_product):
    make_product()
    make_product(stock=0)
    data = client.get("/api/categories").json()["data"]
    assert data[0]["slug"] == "skincare"
    assert data[0]["products_count"] == 1

    res = client.get(f"/api/categories/{category.id}/products").json()["data"]
    assert res["category"]["id"] == category.id
    assert res["products"]["total"] == 1

    assert client.get("/api/categories/999/products").status_code == 404


def test_stores(client, db):
    db.add(Store(name="Downtown", address="5 Market St", city="Phnom Penh", country="KH"))
    db.add(Store(name="Closed", address="9 Side St", city="Phnom Penh", country="KH", is_active=False))
    db.commit()
    stores = client.get("/api/stores").json()["data"]
    assert [s["name"] for s in stores] == ["Downtown"]
    assert client.get(f"/api/stores/{stores[0]['id']}").status_code == 200
    missing = client.get("/api/stores/999")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Store not found"
