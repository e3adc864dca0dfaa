"""
Category catalog endpoints (read-only).
"""

from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Category

router = APIRouter()


class CategoryOut(BaseModel):
    code: int
    name: str
    group_name: str

    class Config:
        from_attributes = True


@router.get("/", response_model=list[CategoryOut])
def list_categories(group: Optional[str] = None, db: Session = Depends(get_db)):
    """List categories by code, optionally only one group."""
    query = db.query(Category)
    if group:
        query = query.filter(Category.group_name == group)
    return query.order_by(Category.code).all()
