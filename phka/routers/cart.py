"""
Shopping cart of the signed-in user
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from phka.checkout import get_cart, validate_cart_items
from phka.database import get_db
from phka.models import CartItem, Product, ProductVariant, ShoppingCart, User
from phka.responses import send_response, validation_failed
from phka.schemas import AddToCartRequest, UpdateCartItemRequest
from phka.security import get_current_user
from phka.serializers import cart_dict, cart_item_dict
from phka.utils import as_float

router = APIRouter(prefix="/api/cart", tags=["cart"])

MAX_LINE_QUANTITY = 99


def _owned_item(db: Session, user: User, item_id: int) -> CartItem:
    item = (
        db.query(CartItem)
        .join(ShoppingCart, CartItem.cart_id == ShoppingCart.id)
        .filter(CartItem.id == item_id, ShoppingCart.user_id == user.id)
        .first()
    )
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


@router.get("")
def show_cart(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = get_cart(db, user, create=True)
    return send_response(
        {"cart": cart_dict(cart), "items_count": len(cart.items), "total_amount": as_float(cart.total_amount)}
    )


@router.post("/items")
def add_item(payload: AddToCartRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    product = db.get(Product, payload.product_id)
    if not product:
        raise HTTPException(status_code=422, detail=validation_failed({"product_id": ["Selected product does not exist."]}))
    variant = None
    if payload.variant_id is not None:
        variant = db.get(ProductVariant, payload.variant_id)
        if not variant:
            raise HTTPException(
                status_code=422, detail=validation_failed({"variant_id": ["Selected product variant does not exist."]})
            )
        if variant.product_id != product.id:
            raise HTTPException(
                status_code=422,
                detail=validation_failed({"variant_id": ["Selected variant does not belong to the specified product."]}),
            )

    cart = get_cart(db, user, create=True)
    item = (
        db.query(CartItem)
        .filter(
            CartItem.cart_id == cart.id,
            CartItem.product_id == product.id,
            CartItem.product_variant_id == (variant.id if variant else None),
        )
        .first()
    )
    if item:
        if item.quantity + payload.quantity > MAX_LINE_QUANTITY:
            raise HTTPException(status_code=422, detail=validation_failed({"quantity": ["Quantity cannot exceed 99."]}))
        item.quantity += payload.quantity
    else:
        item = CartItem(
            cart_id=cart.id,
            product_id=product.id,
            product_variant_id=variant.id if variant else None,
            quantity=payload.quantity,
            unit_price=(variant or product).current_price,
        )
        db.add(item)
    db.commit()
    db.refresh(cart)
    db.refresh(item)
    return send_response(
        {"cart": cart_dict(cart), "item": cart_item_dict(item)}, "Item added to cart successfully"
    )


@router.put("/items/{item_id}")
def update_item(
    item_id: int, payload: UpdateCartItemRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    item = _owned_item(db, user, item_id)
    item.quantity = payload.quantity
    db.commit()
    cart = item.cart
    db.refresh(cart)
    return send_response({"cart": cart_dict(cart)}, "Cart item updated successfully")


@router.delete("/items/{item_id}")
def remove_item(item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    item = _owned_item(db, user, item_id)
    cart = item.cart
    db.delete(item)
    db.commit()
    db.refresh(cart)
    return send_response({"cart": cart_dict(cart)}, "Item removed from cart successfully")


@router.delete("/clear")
def clear_cart(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = get_cart(db, user)
    if cart:
        cart.items.clear()
        db.commit()
    return send_response(message="Cart cleared successfully")


@router.get("/summary")
def cart_summary(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = get_cart(db, user)
    if not cart:
        return send_response({"items_count": 0, "total_quantity": 0, "total_amount": 0, "items": []})
    return send_response(
        {
            "items_count": len(cart.items),
            "total_quantity": cart.total_quantity,
            "total_amount": as_float(cart.total_amount),
            "items": [cart_item_dict(i) for i in cart.items],
        }
    )


@router.get("/validate")
def validate_cart(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = get_cart(db, user)
    if not cart:
        return send_response({"valid": True, "issues": []})
    return send_response(validate_cart_items(cart))
