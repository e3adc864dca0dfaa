"""
Seed data for initial database setup: the household category catalog.
"""

import logging
from sqlalchemy.orm import Session
from ..database import SessionLocal
from ..models import Category

logger = logging.getLogger(__name__)

FIXED_COSTS_GROUP = "固定費"

# code → (name, group)
CATEGORIES = {
    100: ("食費", "食費"),
    103: ("外食費", "食費"),
    105: ("酒", "食費"),
    200: ("日用品・雑費", "日用品"),
    201: ("クリーニング", "日用品"),
    300: ("交通費", "交通費"),
    400: ("交際費・娯楽", "交際費"),
    401: ("映画", "交際費"),
    402: ("本", "交際費"),
    500: ("医療費", "医療費"),
    900: ("その他", "その他"),
    901: ("小遣い", "その他"),
    600: ("家賃・光熱費", FIXED_COSTS_GROUP),
    601: ("電気", FIXED_COSTS_GROUP),
    602: ("水道", FIXED_COSTS_GROUP),
    603: ("ガス一般", FIXED_COSTS_GROUP),
    604: ("家賃", FIXED_COSTS_GROUP),
    605: ("固定電話・フレッツ", FIXED_COSTS_GROUP),
    606: ("食洗機", FIXED_COSTS_GROUP),
    607: ("携帯電話", FIXED_COSTS_GROUP),
    608: ("保険", FIXED_COSTS_GROUP),
}


def seed_categories(db: Session) -> int:
    """Insert any catalog categories that are missing. Returns how many were added."""
    existing = {code for (code,) in db.query(Category.code).all()}
    added = 0
    for code, (name, group) in CATEGORIES.items():
        if code in existing:
            continue
        db.add(Category(code=code, name=name, group_name=group))
        added += 1
    if added:
        db.commit()
        logger.info(f"Seeded {added} categories")
    return added


def seed_database():
    """Startup hook: seed the catalog using a fresh session."""
    db = SessionLocal()
    try:
        seed_categories(db)
    finally:
        db.close()
