"""
SQLAlchemy models for the Phka shop
"""

# Import all models so they register on Base.metadata
from .user import Address, PersonalAccessToken, User
from .catalog import Category, Product, ProductReview, ProductVariant, RecentlyViewed, Store, Wishlist
from .cart import CartItem, ShoppingCart
from .order import InventoryAudit, Order, OrderItem, OrderTracking
from .content import BeautyQuiz, BeautyTip, QuizQuestion, QuizResult, TutorialVideo
from .community import CommunityPost, PostComment, PostLike
from .support import FAQ, SupportMessage, SupportTicket

__all__ = [
    "User",
    "PersonalAccessToken",
    "Address",
    "Category",
    "Product",
    "ProductVariant",
    "ProductReview",
    "Wishlist",
    "RecentlyViewed",
    "Store",
    "ShoppingCart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderTracking",
    "InventoryAudit",
    "BeautyTip",
    "TutorialVideo",
    "BeautyQuiz",
    "QuizQuestion",
    "QuizResult",
    "CommunityPost",
    "PostComment",
    "PostLike",
    "FAQ",
    "SupportTicket",
    "SupportMessage",
]
