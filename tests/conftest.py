import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import phka.models  # noqa: E402,F401
from phka.database import Base, get_db  # noqa: E402
from phka.main import app  # noqa: E402
from phka.models import Address, Category, Product, ProductVariant, ShoppingCart, User  # noqa: E402
from phka.models.user import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SUPER_ADMIN  # noqa: E402
from phka.security import account_failures, hash_password, issue_token, rate_store  # noqa: E402

PASSWORD = "Secret123"

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    rate_store.clear()
    account_failures.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="jane@example.com", role=ROLE_CUSTOMER, name="Jane Doe", is_active=True):
        user = User(name=name, email=email, password=hash_password(PASSWORD), role=role, is_active=is_active)
        db.add(user)
        db.flush()
        db.add(ShoppingCart(user_id=user.id))
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_for(db):
    def _headers(user):
        token = issue_token(db, user, "tests")
        db.commit()
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def customer_headers(customer, auth_for):
    return auth_for(customer)


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role=ROLE_ADMIN, name="Ada Admin")


@pytest.fixture
def admin_headers(admin, auth_for):
    return auth_for(admin)


@pytest.fixture
def super_admin(make_user):
    return make_user(email="root@example.com", role=ROLE_SUPER_ADMIN, name="Sam Super")


@pytest.fixture
def super_admin_headers(super_admin, auth_for):
    return auth_for(super_admin)


@pytest.fixture
def category(db):
    cat = Category(name="Skincare", slug="skincare", description="Serums and creams")
    db.add(cat)
    db.commit()
    db.refresh(cat)
    return cat


@pytest.fixture
def make_product(db, category):
    counter = {"n": 0}

    def _make(name="Rose Serum", price="20.00", stock=10, sale_price=None, skin_types=None, **extra):
        counter["n"] += 1
        product = Product(
            category_id=category.id,
            name=name,
            slug=f"product-{counter['n']}",
            sku=f"SKU-{counter['n']:03d}",
            brand=extra.pop("brand", "Phka"),
            description=extra.pop("description", f"{name} description"),
            price=Decimal(price),
            sale_price=Decimal(sale_price) if sale_price else None,
            stock_quantity=stock,
            skin_types=skin_types if skin_types is not None else ["dry", "normal"],
            **extra,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def variant(db, product):
    v = ProductVariant(product_id=product.id, name="Travel size", sku="SKU-VAR-1", price=Decimal("12.00"), stock_quantity=5)
    db.add(v)
    db.commit()
    db.refresh(v)
    return v


@pytest.fixture
def make_address(db):
    def _make(user, **overrides):
        fields = dict(
            type="both",
            first_name="Jane",
            last_name="Doe",
            address_line_1="1 Main Street",
            city="Springfield",
            state="IL",
            postal_code="62701",
            country="US",
            is_default=True,
        )
        fields.update(overrides)
        address = Address(user_id=user.id, **fields)
        db.add(address)
        db.commit()
        db.refresh(address)
        return address

    return _make


@pytest.fixture
def address(customer, make_address):
    return make_address(customer)
