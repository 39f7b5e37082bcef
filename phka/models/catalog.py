"""
Catalog models: categories, products, variants, reviews, wishlists, stores
"""
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from phka.database import Base, utcnow


def _effective_price(price, sale_price):
    if sale_price is not None and price is not None and Decimal(sale_price) < Decimal(price):
        return Decimal(sale_price)
    return Decimal(price) if price is not None else None


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    image = Column(String(255))
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="stock_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    sku = Column(String(100), nullable=False, unique=True)
    brand = Column(String(255))
    description = Column(Text)
    short_description = Column(String(500))
    price = Column(DECIMAL(10, 2), nullable=False)
    sale_price = Column(DECIMAL(10, 2))
    stock_quantity = Column(Integer, nullable=False, default=0)
    tags = Column(JSON)
    skin_types = Column(JSON)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    rating = Column(DECIMAL(3, 2), nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    purchase_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    category = relationship("Category", back_populates="products")
    variants = relationship(
        "ProductVariant", back_populates="product", cascade="all, delete-orphan", order_by="ProductVariant.sort_order"
    )
    reviews = relationship("ProductReview", back_populates="product", cascade="all, delete-orphan")

    @property
    def current_price(self) -> Decimal:
        return _effective_price(self.price, self.sale_price)

    @property
    def is_on_sale(self) -> bool:
        return self.current_price < Decimal(self.price)

    @property
    def in_stock(self) -> bool:
        return (self.stock_quantity or 0) > 0

    def __repr__(self):
        return f"<Product(id={self.id}, sku={self.sku}, stock={self.stock_quantity})>"


class ProductVariant(Base):
    __tablename__ = "product_variants"
    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="variant_stock_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=False, unique=True)
    price = Column(DECIMAL(10, 2))
    sale_price = Column(DECIMAL(10, 2))
    stock_quantity = Column(Integer, nullable=False, default=0)
    attributes = Column(JSON)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    product = relationship("Product", back_populates="variants")

    @property
    def current_price(self) -> Decimal:
        # a variant without its own price sells at the product's price
        if self.price is None:
            return self.product.current_price
        return _effective_price(self.price, self.sale_price)

    @property
    def in_stock(self) -> bool:
        return (self.stock_quantity or 0) > 0

    def __repr__(self):
        return f"<ProductVariant(id={self.id}, sku={self.sku}, stock={self.stock_quantity})>"


class ProductReview(Base):
    __tablename__ = "product_reviews"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(255))
    comment = Column(Text)
    is_approved = Column(Boolean, nullable=False, default=False)
    admin_notes = Column(Text)
    moderated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    moderated_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    product = relationship("Product", back_populates="reviews")
    user = relationship("User", back_populates="reviews", foreign_keys=[user_id])

    def __repr__(self):
        return f"<ProductReview(id={self.id}, product_id={self.product_id}, rating={self.rating})>"


class Wishlist(Base):
    __tablename__ = "wishlists"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_wishlists_user_product"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="wishlist_items")
    product = relationship("Product")

    def __repr__(self):
        return f"<Wishlist(id={self.id}, user_id={self.user_id}, product_id={self.product_id})>"


class RecentlyViewed(Base):
    __tablename__ = "recently_viewed"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_recently_viewed_user_product"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    viewed_at = Column(DateTime, default=utcnow, nullable=False)

    product = relationship("Product")

    @classmethod
    def touch(cls, db, user_id, product_id):
        """Insert or refresh the view timestamp for a user/product pair"""
        entry = db.query(cls).filter(cls.user_id == user_id, cls.product_id == product_id).first()
        if entry:
            entry.viewed_at = utcnow()
        else:
            db.add(cls(user_id=user_id, product_id=product_id))

    def __repr__(self):
        return f"<RecentlyViewed(user_id={self.user_id}, product_id={self.product_id})>"


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100))
    postal_code = Column(String(20))
    country = Column(String(2), nullable=False, default="US")
    phone = Column(String(20))
    email = Column(String(255))
    opening_hours = Column(JSON)
    latitude = Column(Float)
    longitude = Column(Float)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Store(id={self.id}, name={self.name}, city={self.city})>"
