# config.py
"""
Runtime configuration for the Phka API.
Every value can be overridden from the environment or a local .env file.
"""

import os
import secrets
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

# ---------- Database ----------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./phka.db")

# ---------- Auth ----------
SECRET_FILE = os.getenv("SECRET_FILE", ".secret_key")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
TOKEN_EXPIRES_MINUTES = int(os.getenv("TOKEN_EXPIRES_MINUTES", str(60 * 24 * 7)))  # 7 days

# ---------- Checkout ----------
TAX_RATE = Decimal(os.getenv("TAX_RATE", "0.08"))
FREE_SHIPPING_THRESHOLD = Decimal(os.getenv("FREE_SHIPPING_THRESHOLD", "50"))
SHIPPING_FLAT_RATE = Decimal(os.getenv("SHIPPING_FLAT_RATE", "5.99"))
ESTIMATED_DELIVERY_DAYS = int(os.getenv("ESTIMATED_DELIVERY_DAYS", "3"))

# ---------- Rate limits (requests per window, window in seconds) ----------
REGISTER_RATE_LIMIT = int(os.getenv("REGISTER_RATE_LIMIT", "5"))
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
CHECKOUT_RATE_LIMIT = int(os.getenv("CHECKOUT_RATE_LIMIT", "10"))
RATE_LIMIT_WINDOW = int(os.getenv("RATE_LIMIT_WINDOW", "60"))

# ---------- App ----------
APP_NAME = os.getenv("APP_NAME", "Phka Beauty API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# SECRET KEY management
def ensure_secret() -> bytes:
    env_key = os.getenv("SECRET_KEY")
    if env_key:
        return env_key.encode()
    if os.path.exists(SECRET_FILE):
        with open(SECRET_FILE, "rb") as f:
            return f.read()
    key = secrets.token_urlsafe(32).encode()
    with open(SECRET_FILE, "wb") as f:
        f.write(key)
    return key


SECRET_KEY = ensure_secret()
