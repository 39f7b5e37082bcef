"""
Small helpers shared by the routers: money rounding, text sanitising and
human-readable reference numbers.
"""
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from phka.database import utcnow

CENTS = Decimal("0.01")


def money(value) -> Decimal:
    """Round to cents, half up"""
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


def as_float(value) -> Optional[float]:
    if value is None:
        return None
    return float(money(value))


# ---------- Basic server-side sanitization (XSS protection) ----------
def sanitize_text(s: Optional[str]) -> Optional[str]:
    """
    Basic sanitizer: remove HTML tags. This is simple and not a full HTML sanitizer,
    but it prevents common script tag injection and inline tags.
    """
    if s is None:
        return s
    no_tags = re.sub(r"<[^>]*?>", "", s)
    return no_tags.replace("\r", "").strip()


def next_reference(db, column, prefix: str) -> str:
    """
    Build the next `<PREFIX>-<year>-<NNNNNN>` reference for `column`.
    The sequence follows the row count; an already-taken number is skipped.
    """
    year = utcnow().year
    seq = db.query(column.class_).count() + 1
    while True:
        candidate = f"{prefix}-{year}-{seq:06d}"
        if not db.query(column.class_).filter(column == candidate).first():
            return candidate
        seq += 1
