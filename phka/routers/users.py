"""
Signed-in user's profile, address book, wishlist and activity
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from phka.database import get_db
from phka.models import Address, Order, Product, ProductReview, RecentlyViewed, User, Wishlist
from phka.responses import send_response
from phka.routers.auth import apply_profile_update, profile_payload
from phka.schemas import AddressRequest, UpdateAddressRequest, UpdateProfileRequest, WishlistRequest
from phka.security import get_current_user
from phka.serializers import address_dict, product_dict, review_dict, user_dict
from phka.utils import as_float


router = APIRouter(prefix="/api/user", tags=["user"])

_REQUIRED_ADDRESS_FIELDS = (
    "type",
    "first_name",
    "last_name",
    "address_line_1",
    "city",
    "state",
    "postal_code",
    "country",
    "is_default",
)


def _stats(db: Session, user: User) -> dict:
    return {
        "total_orders": db.query(Order).filter(Order.user_id == user.id).count(),
        "total_reviews": db.query(ProductReview).filter(ProductReview.user_id == user.id).count(),
        "loyalty_points": user.loyalty_points,
        "wishlist_count": db.query(Wishlist).filter(Wishlist.user_id == user.id).count(),
    }


def _own_address(db: Session, user: User, address_id: int) -> Address:
    address = db.query(Address).filter(Address.id == address_id, Address.user_id == user.id).first()
    if not address:
        raise HTTPException(status_code=404, detail="Address not found")
    return address


def _clear_default(db: Session, user: User, address_type: str, keep_id=None):
    query = db.query(Address).filter(Address.user_id == user.id, Address.type == address_type)
    if keep_id is not None:
        query = query.filter(Address.id != keep_id)
    query.update({Address.is_default: False}, synchronize_session="evaluate")


# ---------- Profile ----------
@router.get("")
def current_user(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return send_response({"user": profile_payload(db, user), "stats": _stats(db, user)})


@router.get("/profile")
def profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    data = profile_payload(db, user)
    latest_reviews = (
        db.query(ProductReview)
        .filter(ProductReview.user_id == user.id)
        .order_by(ProductReview.created_at.desc(), ProductReview.id.desc())
        .limit(5)
    )
    data["reviews"] = [review_dict(r) for r in latest_reviews]
    return send_response({"user": data, "stats": _stats(db, user)})


@router.put("/profile")
def update_profile(payload: UpdateProfileRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = apply_profile_update(db, user, payload)
    return send_response({"user": user_dict(user)}, "Profile updated successfully")


# ---------- Addresses ----------
@router.get("/addresses")
def list_addresses(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    addresses = (
        db.query(Address)
        .filter(Address.user_id == user.id)
        .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
        .all()
    )
    return send_response([address_dict(a) for a in addresses])


@router.post("/addresses", status_code=201)
def create_address(payload: AddressRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if payload.is_default:
        _clear_default(db, user, payload.type)
    address = Address(user_id=user.id, **payload.model_dump())
    address.country = address.country.upper()
    db.add(address)
    db.commit()
    db.refresh(address)
    return send_response(address_dict(address), "Address created successfully", status_code=201)


@router.put("/addresses/{address_id}")
def update_address(
    address_id: int, payload: UpdateAddressRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    address = _own_address(db, user, address_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("is_default"):
        _clear_default(db, user, changes.get("type") or address.type, keep_id=address.id)
    for field, value in changes.items():
        if value is None and field in _REQUIRED_ADDRESS_FIELDS:
            continue
        setattr(address, field, value.upper() if field == "country" else value)
    db.commit()
    db.refresh(address)
    return send_response(address_dict(address), "Address updated successfully")


@router.delete("/addresses/{address_id}")
def delete_address(address_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    address = _own_address(db, user, address_id)
    in_use = (
        db.query(Order)
        .filter(or_(Order.billing_address_id == address.id, Order.shipping_address_id == address.id))
        .first()
    )
    if in_use:
        raise HTTPException(status_code=400, detail="Address is used by an existing order and cannot be deleted")
    db.delete(address)
    db.commit()
    return send_response(message="Address deleted successfully")


# ---------- Wishlist ----------
@router.get("/wishlist")
def wishlist(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entries = (
        db.query(Wishlist)
        .filter(Wishlist.user_id == user.id)
        .order_by(Wishlist.created_at.desc(), Wishlist.id.desc())
        .all()
    )
    return send_response(
        [{"id": w.id, "product": product_dict(w.product), "added_at": w.created_at} for w in entries]
    )


@router.post("/wishlist")
def add_to_wishlist(payload: WishlistRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    product = db.get(Product, payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    exists = db.query(Wishlist).filter(Wishlist.user_id == user.id, Wishlist.product_id == product.id).first()
    if exists:
        raise HTTPException(status_code=400, detail="Product already in wishlist")
    entry = Wishlist(user_id=user.id, product_id=product.id)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return send_response(
        {"id": entry.id, "product": product_dict(product), "added_at": entry.created_at}, "Product added to wishlist"
    )


@router.delete("/wishlist/{product_id}")
def remove_from_wishlist(product_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entry = db.query(Wishlist).filter(Wishlist.user_id == user.id, Wishlist.product_id == product_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Product not in wishlist")
    db.delete(entry)
    db.commit()
    return send_response(message="Product removed from wishlist")


# ---------- Activity ----------
@router.get("/recently-viewed")
def recently_viewed(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entries = (
        db.query(RecentlyViewed)
        .filter(RecentlyViewed.user_id == user.id)
        .order_by(RecentlyViewed.viewed_at.desc(), RecentlyViewed.id.desc())
        .limit(20)
        .all()
    )
    return send_response([{"product": product_dict(e.product), "viewed_at": e.viewed_at} for e in entries])


@router.get("/stats")
def stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    total_spent = (
        db.query(func.coalesce(func.sum(Order.total_amount), 0))
        .filter(Order.user_id == user.id, Order.payment_status == "paid")
        .scalar()
    )
    average_rating = (
        db.query(func.avg(ProductReview.rating)).filter(ProductReview.user_id == user.id).scalar()
    )
    data = _stats(db, user)
    data.update(
        {
            "total_spent": as_float(total_spent),
            "average_rating": round(float(average_rating or 0), 2),
            "member_since": user.created_at.strftime("%b %Y") if user.created_at else None,
        }
    )
    return send_response(data)
