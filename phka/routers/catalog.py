"""
Public catalog: products, categories, stores. Customers may also leave reviews.
"""
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from phka.database import get_db
from phka.models import Category, Product, ProductReview, RecentlyViewed, Store, User
from phka.responses import paginate, send_response
from phka.schemas import ReviewRequest
from phka.security import get_current_user, get_optional_user
from phka.serializers import category_dict, product_dict, review_dict, store_dict, variant_dict
from phka.utils import sanitize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])

_SORT_COLUMNS = {
    "price": Product.price,
    "rating": Product.rating,
    "popularity": Product.view_count,
    "created_at": Product.created_at,
    "name": Product.name,
}


def available_products(db: Session):
    """Active products with stock on hand"""
    return db.query(Product).filter(Product.is_active.is_(True), Product.stock_quantity > 0)


def json_contains(column, value: str):
    return cast(column, String).like(f'%"{value}"%')


def _text_match(term: str, *columns):
    pattern = f"%{term}%"
    # JSON columns are matched on their serialised text
    return or_(*[cast(c, String).ilike(pattern) for c in columns])


def get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# ---------- PRODUCTS ----------
@router.get("/products")
def list_products(
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    skin_type: Optional[str] = None,
    brand: Optional[str] = None,
    sort_by: Literal["price", "rating", "popularity", "newest", "created_at", "name"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = available_products(db)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        query = query.filter(_text_match(search.strip(), Product.name, Product.description, Product.tags))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if skin_type:
        query = query.filter(json_contains(Product.skin_types, skin_type))
    if brand:
        query = query.filter(Product.brand == brand)

    if sort_by == "newest":
        query = query.order_by(Product.created_at.desc(), Product.id.desc())
    else:
        column = _SORT_COLUMNS[sort_by]
        direction = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(direction, Product.id.asc())

    return send_response(paginate(query, page, per_page, product_dict))


@router.get("/products/featured")
def featured_products(db: Session = Depends(get_db)):
    products = (
        available_products(db)
        .filter(Product.is_featured.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(10)
        .all()
    )
    return send_response([product_dict(p) for p in products])


@router.get("/products/search")
def search_products(q: Optional[str] = None, db: Session = Depends(get_db)):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    products = (
        available_products(db)
        .filter(_text_match(q.strip(), Product.name, Product.description, Product.tags, Product.brand))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(50)
        .all()
    )
    return send_response([product_dict(p) for p in products])


@router.get("/products/{product_id}")
def show_product(
    product_id: int, user: Optional[User] = Depends(get_optional_user), db: Session = Depends(get_db)
):
    product = get_product_or_404(db, product_id)
    if user:
        RecentlyViewed.touch(db, user.id, product.id)
    product.view_count = (product.view_count or 0) + 1
    db.commit()
    db.refresh(product)
    return send_response(product_dict(product, detail=True))


@router.get("/products/{product_id}/variants")
def product_variants(product_id: int, db: Session = Depends(get_db)):
    product = get_product_or_404(db, product_id)
    variants = [v for v in product.variants if v.is_active]
    variants.sort(key=lambda v: (v.current_price, v.id))
    return send_response([variant_dict(v) for v in variants])


@router.get("/products/{product_id}/reviews")
def product_reviews(
    product_id: int,
    rating: Optional[int] = Query(None, ge=1, le=5),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    get_product_or_404(db, product_id)
    query = db.query(ProductReview).filter(
        ProductReview.product_id == product_id, ProductReview.is_approved.is_(True)
    )
    if rating is not None:
        query = query.filter(ProductReview.rating == rating)
    query = query.order_by(ProductReview.created_at.desc(), ProductReview.id.desc())
    return send_response(paginate(query, page, 10, review_dict))


@router.post("/products/{product_id}/reviews", status_code=201)
def create_review(
    product_id: int, payload: ReviewRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    product = get_product_or_404(db, product_id)
    existing = (
        db.query(ProductReview).filter(ProductReview.product_id == product.id, ProductReview.user_id == user.id).first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="You have already reviewed this product")
    review = ProductReview(
        product_id=product.id,
        user_id=user.id,
        rating=payload.rating,
        title=sanitize_text(payload.title),
        comment=sanitize_text(payload.comment),
        is_approved=False,
    )
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("Review %s submitted for product %s", review.id, product.id)
    return send_response(review_dict(review), "Review submitted and awaiting moderation", status_code=201)


@router.get("/products/{product_id}/similar")
def similar_products(product_id: int, db: Session = Depends(get_db)):
    product = get_product_or_404(db, product_id)
    products = (
        available_products(db)
        .filter(Product.category_id == product.category_id, Product.id != product.id)
        .order_by(Product.rating.desc(), Product.id.asc())
        .limit(6)
        .all()
    )
    return send_response([product_dict(p) for p in products])


# ---------- CATEGORIES ----------
@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    categories = (
        db.query(Category)
        .filter(Category.is_active.is_(True))
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    data = []
    for category in categories:
        row = category_dict(category)
        row["products_count"] = available_products(db).filter(Product.category_id == category.id).count()
        data.append(row)
    return send_response(data)


@router.get("/categories/{category_id}/products")
def category_products(category_id: int, page: int = Query(1, ge=1), db: Session = Depends(get_db)):
    category = db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    query = (
        available_products(db)
        .filter(Product.category_id == category.id)
        .order_by(Product.created_at.desc(), Product.id.desc())
    )
    return send_response({"category": category_dict(category), "products": paginate(query, page, 20, product_dict)})


# ---------- STORES ----------
@router.get("/stores")
def list_stores(city: Optional[str] = None, state: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(Store).filter(Store.is_active.is_(True))
    if city:
        query = query.filter(Store.city == city)
    if state:
        query = query.filter(Store.state == state)
    return send_response([store_dict(s) for s in query.order_by(Store.name.asc()).all()])


@router.get("/stores/{store_id}")
def show_store(store_id: int, db: Session = Depends(get_db)):
    store = db.query(Store).filter(Store.id == store_id, Store.is_active.is_(True)).first()
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")
    return send_response(store_dict(store))
