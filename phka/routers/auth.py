"""
Registration, login/logout and the signed-in user's own account
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from phka.config import LOGIN_RATE_LIMIT, RATE_LIMIT_WINDOW, REGISTER_RATE_LIMIT
from phka.database import get_db
from phka.models import Order, PersonalAccessToken, ShoppingCart, User
from phka.models.user import ROLE_CUSTOMER
from phka.responses import send_response, validation_failed
from phka.schemas import ChangePasswordRequest, LoginRequest, RegisterRequest, UpdateProfileRequest
from phka.security import (
    clear_failures,
    get_current_token,
    get_current_user,
    hash_password,
    is_locked,
    issue_token,
    lockout_message,
    rate_limit,
    record_failed_attempt,
    revoke_all_tokens,
    verify_password,
)
from phka.serializers import address_dict, order_dict, user_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def profile_payload(db: Session, user: User) -> dict:
    data = user_dict(user)
    data["addresses"] = [address_dict(a) for a in user.addresses]
    latest = (
        db.query(Order).filter(Order.user_id == user.id).order_by(Order.created_at.desc(), Order.id.desc()).limit(5)
    )
    data["orders"] = [order_dict(o) for o in latest]
    return data


def apply_profile_update(db: Session, user: User, payload: UpdateProfileRequest) -> User:
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


@router.post("/register", status_code=201)
@rate_limit(limit=REGISTER_RATE_LIMIT, window=RATE_LIMIT_WINDOW, key="register")
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=422, detail=validation_failed({"email": ["This email address is already registered."]})
        )
    user = User(
        name=payload.name,
        email=email,
        password=hash_password(payload.password),
        phone=payload.phone,
        birth_date=payload.birth_date,
        gender=payload.gender,
        skin_type=payload.skin_type,
        role=ROLE_CUSTOMER,
        loyalty_points=0,
        is_active=True,
    )
    db.add(user)
    db.flush()
    db.add(ShoppingCart(user_id=user.id))
    token = issue_token(db, user, payload.device_name)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return send_response(
        {"user": user_dict(user), "token": token, "token_type": "Bearer"},
        "User registered successfully",
        status_code=201,
    )


@router.post("/login")
@rate_limit(limit=LOGIN_RATE_LIMIT, window=RATE_LIMIT_WINDOW, key="login")
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user:
        logger.warning("Login failed for unknown email")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    lock_until = is_locked(user.id)
    if lock_until:
        raise HTTPException(status_code=403, detail=lockout_message(lock_until))

    if not verify_password(payload.password, user.password):
        logger.warning("Login failed for user %s", user.id)
        lock_until = record_failed_attempt(user.id)
        if lock_until:
            raise HTTPException(status_code=403, detail=lockout_message(lock_until))
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")

    clear_failures(user.id)
    token = issue_token(db, user, payload.device_name)
    db.commit()
    return send_response({"user": user_dict(user), "token": token, "token_type": "Bearer"}, "Login successful")


@router.post("/logout")
def logout(token: PersonalAccessToken = Depends(get_current_token), db: Session = Depends(get_db)):
    db.delete(token)
    db.commit()
    return send_response(message="Logout successful")


@router.get("/profile")
def profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return send_response({"user": profile_payload(db, user)})


@router.put("/profile")
def update_profile(payload: UpdateProfileRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = apply_profile_update(db, user, payload)
    return send_response({"user": user_dict(user)}, "Profile updated successfully")


@router.put("/change-password")
def change_password(payload: ChangePasswordRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not verify_password(payload.current_password, user.password):
        raise HTTPException(
            status_code=422, detail=validation_failed({"current_password": ["Current password is incorrect."]})
        )
    user.password = hash_password(payload.password)
    revoked = revoke_all_tokens(db, user)
    token = issue_token(db, user, payload.device_name)
    db.commit()
    logger.info("Password changed for user %s, %d tokens revoked", user.id, revoked)
    return send_response({"token": token, "token_type": "Bearer"}, "Password changed successfully")
