from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class ArticleBase(SQLModel):
    """Champs communs d'un article du catalogue."""
    reference: str = Field(index=True, unique=True)   # ex: "ART-001"
    designation: str
    unit_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)


class Article(ArticleBase, table=True):
    __tablename__ = "article"

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class ArticleCreate(ArticleBase):
    pass


class ArticleRead(ArticleBase):
    id: int


class ArticleUpdate(SQLModel):
    """Payload partiel pour mise à jour."""
    reference: Optional[str] = None
    designation: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock_quantity: Optional[int] = Field(default=None, ge=0)


class StockRead(ArticleRead):
    critical: bool = False
