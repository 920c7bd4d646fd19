# app/services/stock.py
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from app.errors import (
    EmptyOrderError,
    InsufficientStockError,
    MissingClientError,
    OutOfStockError,
    UnknownArticleError,
    ValidationError,
)
from app.models.article import Article, now_utc

CRITICAL_STOCK_THRESHOLD = int(os.getenv("CRITICAL_STOCK_THRESHOLD", "10"))

MOVEMENT_TYPES = ("IN", "OUT", "SALE", "ADJUST")


def load_catalog(session: Session) -> Dict[int, Article]:
    """
    Lecture de référence du stock: sert aux alertes ET à la validation
    des commandes.
    """
    return {a.id: a for a in session.exec(select(Article)).all()}


def validate(
    lines: Iterable[Any],
    catalog: Mapping[int, Any],
    client_id: Optional[int] = None,
) -> List[Any]:
    """
    Contrôle bloquant avant écriture.

    - pas de client                 -> MissingClientError
    - lignes sans article           -> ignorées
    - plus aucune ligne             -> EmptyOrderError
    - stock <= 0                    -> OutOfStockError
    - quantité cumulée > stock      -> InsufficientStockError

    Retourne les lignes retenues, dans l'ordre de saisie.
    """
    if not client_id:
        raise MissingClientError()

    kept = [line for line in lines if getattr(line, "article_id", None)]
    if not kept:
        raise EmptyOrderError()

    # quantité demandée cumulée par article (un article peut occuper plusieurs lignes)
    requested: Dict[int, int] = {}
    for line in kept:
        article = catalog.get(line.article_id)
        if article is None:
            raise UnknownArticleError(line.article_id)

        stock = int(article.stock_quantity or 0)
        if stock <= 0:
            raise OutOfStockError(article.designation, article.id)
        if line.quantity <= 0:
            raise ValidationError(f"Quantité invalide pour {article.designation}")

        requested[line.article_id] = requested.get(line.article_id, 0) + line.quantity
        if requested[line.article_id] > stock:
            raise InsufficientStockError(article.designation, requested[line.article_id], stock, article.id)

    return kept


def stock_alerts(articles: Iterable[Any], threshold: int = CRITICAL_STOCK_THRESHOLD) -> List[Any]:
    return [a for a in articles if (a.stock_quantity or 0) <= threshold]


def is_critical(article: Any, threshold: int = CRITICAL_STOCK_THRESHOLD) -> bool:
    return (article.stock_quantity or 0) <= threshold


def decrement_stock(session: Session, article: Article, qty: int) -> None:
    """
    Décrément conditionnel: ne passe que si le stock couvre la demande
    au moment de l'UPDATE. Ne commit pas.
    """
    stmt = (
        update(Article)
        .where(Article.id == article.id, Article.stock_quantity >= qty)
        .values(stock_quantity=Article.stock_quantity - qty, updated_at=now_utc())
    )
    result = session.execute(stmt)
    if result.rowcount != 1:
        session.refresh(article)
        raise InsufficientStockError(article.designation, qty, article.stock_quantity, article.id)


def apply_movement(article: Article, movement: str, qty: int) -> Article:
    """
    - IN      : quantité += qty
    - OUT     : quantité -= qty (jamais < 0)
    - SALE    : quantité -= qty (jamais < 0)
    - ADJUST  : quantité = qty (ajustement absolu)
    """
    if movement == "IN":
        article.stock_quantity += qty
    elif movement in ("OUT", "SALE"):
        article.stock_quantity = max(0, article.stock_quantity - qty)
    elif movement == "ADJUST":
        article.stock_quantity = qty
    else:
        raise ValidationError("Type de mouvement invalide")

    article.updated_at = now_utc()
    return article
