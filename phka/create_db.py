# create_db.py
"""
Seeds the Phka database with demo users, catalog, beauty content and FAQs.
Run: python -m phka.create_db [--reset]
"""
import argparse
from decimal import Decimal

from phka.database import SessionLocal, create_tables, drop_tables
from phka.models import (
    FAQ,
    BeautyQuiz,
    BeautyTip,
    Category,
    InventoryAudit,
    Product,
    ProductReview,
    ProductVariant,
    QuizQuestion,
    ShoppingCart,
    Store,
    TutorialVideo,
    User,
)
from phka.models.user import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SUPER_ADMIN
from phka.routers.admin import refresh_product_rating
from phka.security import hash_password

USERS = [
    ("Super Admin", "superadmin@phka.com", "SuperPass123!", ROLE_SUPER_ADMIN),
    ("Admin User", "admin@phka.com", "AdminPass123!", ROLE_ADMIN),
    ("Demo Customer", "customer@phka.com", "CustPass123!", ROLE_CUSTOMER),
]

CATEGORIES = [
    ("Skincare", "skincare", "Cleansers, serums and moisturisers"),
    ("Makeup", "makeup", "Foundations, lipsticks and palettes"),
    ("Haircare", "haircare", "Shampoos, conditioners and treatments"),
]

# (category slug, name, sku, brand, price, sale_price, stock, skin types, featured, variants)
PRODUCTS = [
    ("skincare", "Hydrating Rose Serum", "SKN-SERUM-01", "Phka Botanics", "34.00", "28.50", 60,
     ["dry", "normal", "sensitive"], True, []),
    ("skincare", "Clarifying Clay Mask", "SKN-MASK-01", "Phka Botanics", "22.00", None, 45,
     ["oily", "combination"], False, []),
    ("skincare", "Daily Mineral Sunscreen SPF 50", "SKN-SPF-01", "SunVeil", "18.90", None, 80,
     ["dry", "oily", "combination", "normal", "sensitive"], True, []),
    ("makeup", "Velvet Matte Lipstick", "MKP-LIP-01", "Lumiere", "16.00", None, 55,
     ["normal", "combination", "oily"], True,
     [("Ruby", "MKP-LIP-01-RUB", None, 25), ("Nude Rose", "MKP-LIP-01-NUD", "17.50", 30)]),
    ("makeup", "Second Skin Foundation", "MKP-FND-01", "Lumiere", "39.00", "35.00", 35,
     ["dry", "normal"], False,
     [("Ivory", "MKP-FND-01-IVO", None, 12), ("Sand", "MKP-FND-01-SND", None, 15), ("Mocha", "MKP-FND-01-MOC", None, 8)]),
    ("haircare", "Argan Repair Shampoo", "HAI-SHP-01", "Silk & Stem", "14.50", None, 100, [], False, []),
]

REVIEWS = [
    (5, "Glowing skin", "My skin feels soft and hydrated all day."),
    (4, "Really good", "Absorbs quickly, lovely light scent."),
]

TIPS = [
    ("Layer serums from thinnest to thickest", "Apply water-based serums first, then oils and creams.",
     "skincare", ["dry", "normal"]),
    ("Blot, don't wipe", "Use blotting papers through the day to control shine without disturbing makeup.",
     "makeup", ["oily", "combination"]),
]

TUTORIALS = [
    ("Five-minute everyday makeup", "https://videos.phka.com/everyday-look.mp4", 300, "makeup", "beginner"),
    ("Double cleansing explained", "https://videos.phka.com/double-cleanse.mp4", 420, "skincare", "intermediate"),
]

QUIZ_QUESTIONS = [
    ("How does your skin feel a few hours after cleansing?", [
        {"value": "tight", "label": "Tight and flaky", "skin_type": "dry"},
        {"value": "shiny", "label": "Shiny all over", "skin_type": "oily"},
        {"value": "tzone", "label": "Shiny only on the T-zone", "skin_type": "combination"},
        {"value": "comfortable", "label": "Comfortable", "skin_type": "normal"},
    ]),
    ("How often do new products irritate your skin?", [
        {"value": "often", "label": "Often", "skin_type": "sensitive"},
        {"value": "rarely", "label": "Rarely", "skin_type": "normal"},
    ]),
    ("How visible are your pores?", [
        {"value": "large", "label": "Large and visible", "skin_type": "oily"},
        {"value": "small", "label": "Barely visible", "skin_type": "dry"},
        {"value": "mixed", "label": "Larger around the nose", "skin_type": "combination"},
    ]),
]

FAQS = [
    ("How long does shipping take?", "Orders usually arrive within 3 business days.", "shipping"),
    ("Is shipping free?", "Orders over $50 ship free; otherwise a flat $5.99 applies.", "shipping"),
    ("Can I cancel my order?", "Yes, while it is still pending or processing, from your order page.", "orders"),
]

STORES = [
    ("Phka Flagship", "12 Riverside Walk", "Phnom Penh", None, "12000", "KH", "+85512345678"),
    ("Phka Central Market", "88 Market Street", "Siem Reap", None, "17000", "KH", "+85598765432"),
]


def seed(reset: bool = False):
    if reset:
        drop_tables()
    create_tables()
    db = SessionLocal()
    try:
        if db.query(User).first():
            print("Database already seeded; use --reset to start over.")
            return

        users = {}
        for name, email, password, role in USERS:
            user = User(name=name, email=email, password=hash_password(password), role=role)
            db.add(user)
            users[role] = user
        db.flush()
        db.add(ShoppingCart(user_id=users[ROLE_CUSTOMER].id))
        print(f"Seeded {len(users)} users.")

        categories = {}
        for i, (name, slug, description) in enumerate(CATEGORIES):
            categories[slug] = Category(name=name, slug=slug, description=description, sort_order=i)
            db.add(categories[slug])
        db.flush()
        print(f"Seeded {len(categories)} categories.")

        products = []
        variant_count = 0
        for cat, name, sku, brand, price, sale, stock, skin_types, featured, variants in PRODUCTS:
            product = Product(
                category_id=categories[cat].id,
                name=name,
                slug=sku.lower(),
                sku=sku,
                brand=brand,
                short_description=name,
                description=f"{name} by {brand}.",
                price=Decimal(price),
                sale_price=Decimal(sale) if sale else None,
                stock_quantity=stock,
                skin_types=skin_types,
                tags=[cat],
                is_featured=featured,
            )
            for order, (v_name, v_sku, v_price, v_stock) in enumerate(variants):
                product.variants.append(
                    ProductVariant(
                        name=v_name,
                        sku=v_sku,
                        price=Decimal(v_price) if v_price else None,
                        stock_quantity=v_stock,
                        sort_order=order,
                    )
                )
                variant_count += 1
            db.add(product)
            products.append(product)
        db.flush()
        print(f"Seeded {len(products)} products and {variant_count} variants.")

        review_count = 0
        for product in products[:3]:
            for rating, title, comment in REVIEWS:
                db.add(
                    ProductReview(
                        product_id=product.id,
                        user_id=users[ROLE_CUSTOMER].id,
                        rating=rating,
                        title=title,
                        comment=comment,
                        is_approved=True,
                        moderated_by=users[ROLE_ADMIN].id,
                    )
                )
                review_count += 1
            db.flush()
            refresh_product_rating(db, product)
        print(f"Seeded {review_count} reviews.")

        # Inventory audit (initial entries)
        audit_entries = 0
        for product in products:
            if product.variants:
                for variant in product.variants:
                    db.add(InventoryAudit(product_id=product.id, product_variant_id=variant.id,
                                          change=variant.stock_quantity, note="Initial stock seed"))
                    audit_entries += 1
            else:
                db.add(InventoryAudit(product_id=product.id, change=product.stock_quantity, note="Initial stock seed"))
                audit_entries += 1
        print(f"Seeded {audit_entries} audit entries.")

        for title, content, category, skin_types in TIPS:
            db.add(BeautyTip(title=title, content=content, category=category, target_skin_types=skin_types,
                             author_id=users[ROLE_ADMIN].id))
        for title, url, duration, category, level in TUTORIALS:
            db.add(TutorialVideo(title=title, video_url=url, duration=duration, category=category,
                                 difficulty_level=level))
        quiz = BeautyQuiz(title="What's your skin type?", description="Three quick questions to find your match.")
        for order, (question, options) in enumerate(QUIZ_QUESTIONS):
            quiz.questions.append(QuizQuestion(question=question, options=options, sort_order=order))
        db.add(quiz)
        print(f"Seeded {len(TIPS)} tips, {len(TUTORIALS)} tutorials and 1 quiz.")

        for order, (question, answer, category) in enumerate(FAQS):
            db.add(FAQ(question=question, answer=answer, category=category, sort_order=order))
        for name, address, city, state, postal, country, phone in STORES:
            db.add(Store(name=name, address=address, city=city, state=state, postal_code=postal,
                         country=country, phone=phone,
                         opening_hours={"mon-sat": "09:00-20:00", "sun": "10:00-18:00"}))
        print(f"Seeded {len(FAQS)} FAQs and {len(STORES)} stores.")

        db.commit()
        print("Database created.")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Phka database")
    parser.add_argument("--reset", action="store_true", help="drop every table before seeding")
    args = parser.parse_args()
    seed(reset=args.reset)
