from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel

from app.models.article import Article
from app.models.client import Client


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    # valeurs stables, partagées avec le front
    EN_ATTENTE = "en_attente"
    VALIDEE = "validee"
    LIVREE = "livree"
    ANNULEE = "annulee"


# statut courant -> statuts atteignables
ALLOWED_TRANSITIONS = {
    OrderStatus.EN_ATTENTE: {OrderStatus.VALIDEE, OrderStatus.ANNULEE},
    OrderStatus.VALIDEE: {OrderStatus.LIVREE},
    OrderStatus.LIVREE: set(),
    OrderStatus.ANNULEE: set(),
}


# ─────────────────────────────────────────
# TABLES
# ─────────────────────────────────────────

class Order(SQLModel, table=True):
    __tablename__ = "commande"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(index=True, unique=True)   # ex: "CMD-2026-4821"
    client_id: int = Field(index=True, foreign_key="client.id")
    status: str = Field(default=OrderStatus.EN_ATTENTE.value, index=True)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    created_by: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=now_utc, index=True)

    client: Optional[Client] = Relationship()
    lines: List["OrderLine"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "OrderLine.id"},
    )


class OrderLine(SQLModel, table=True):
    __tablename__ = "ligne_commande"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(index=True, foreign_key="commande.id")
    article_id: int = Field(index=True, foreign_key="article.id")
    quantity: int
    unit_price: Decimal = Field(max_digits=12, decimal_places=2)

    order: Optional[Order] = Relationship(back_populates="lines")
    article: Optional[Article] = Relationship()


# ─────────────────────────────────────────
# PAYLOADS
# ─────────────────────────────────────────

class OrderLineIn(SQLModel):
    """Ligne telle que saisie à l'écran; article_id vide = ligne ignorée."""
    article_id: Optional[int] = None
    quantity: int = 1


class OrderCreate(SQLModel):
    client_id: Optional[int] = None
    status: OrderStatus = OrderStatus.EN_ATTENTE
    created_by: Optional[str] = None
    lines: List[OrderLineIn] = Field(default_factory=list)


class OrderStatusUpdate(SQLModel):
    status: OrderStatus


class OrderLineRead(SQLModel):
    id: int
    article_id: int
    article_reference: Optional[str] = None
    article_designation: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderRead(SQLModel):
    id: int
    order_number: str
    client_id: int
    client_name: Optional[str] = None
    status: str
    total_amount: Decimal
    created_by: Optional[str] = None
    created_at: datetime
    lines: List[OrderLineRead] = Field(default_factory=list)


class OrderPage(SQLModel):
    items: List[OrderRead]
    total: int
    page: int
    page_size: int
    total_pages: int


class DraftLineRead(SQLModel):
    line_id: int
    article_id: Optional[int] = None
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class DraftRead(SQLModel):
    client_id: Optional[int] = None
    lines: List[DraftLineRead]
    total: Decimal
