# app/services/orders.py
"""
Passerelle de persistance des commandes.

Entête + lignes + décrément de stock sont écrits dans UNE transaction:
soit tout passe, soit rien n'est écrit.
"""
import logging
import math
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import DataError, IntegrityError
from sqlmodel import Session, select

from app.errors import (
    InvalidTransitionError,
    MissingClientError,
    NotFoundError,
    PersistenceError,
    StockError,
    ValidationError,
)
from app.models.article import Article
from app.models.client import Client
from app.models.document import Document
from app.models.order import (
    ALLOWED_TRANSITIONS,
    Order,
    OrderLine,
    OrderLineRead,
    OrderRead,
    OrderStatus,
)
from app.services.notifications import NotificationChannel, NotificationService
from app.services.stock import decrement_stock, is_critical, load_catalog, validate

log = logging.getLogger("uvicorn.error")

ORDER_NUMBER_ATTEMPTS = 20


# ---------------------------------------------------------
#  Numérotation
# ---------------------------------------------------------

def generate_order_number(now: Optional[datetime] = None, rng: Any = random) -> str:
    year = (now or datetime.now(timezone.utc)).year
    return f"CMD-{year}-{rng.randint(1000, 9999)}"


def _unique_order_number(session: Session) -> str:
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        candidate = generate_order_number()
        taken = session.exec(select(Order.id).where(Order.order_number == candidate)).first()
        if taken is None:
            return candidate
    raise PersistenceError("Impossible de générer un numéro de commande unique.")


def compute_total(lines: Iterable[Any]) -> Decimal:
    return sum(
        (Decimal(str(line.unit_price)) * line.quantity for line in lines),
        Decimal("0"),
    )


# ---------------------------------------------------------
#  Stock
# ---------------------------------------------------------

def _reserve_stock(session: Session, order: Order, catalog: Dict[int, Article]) -> List[Article]:
    """Décrémente le stock de chaque ligne; retourne les articles devenus critiques."""
    critical: List[Article] = []
    for line in order.lines:
        article = catalog[line.article_id]
        decrement_stock(session, article, line.quantity)
        if is_critical(article) and article not in critical:
            critical.append(article)
    return critical


def _notify(notifier: Optional[NotificationService], channel: NotificationChannel, amount: int = 1) -> None:
    if notifier is not None and amount > 0:
        notifier.notify(channel, amount)


# ---------------------------------------------------------
#  Écritures
# ---------------------------------------------------------

def submit(
    session: Session,
    client_id: Optional[int],
    lines: Iterable[Any],
    status: OrderStatus = OrderStatus.EN_ATTENTE,
    created_by: Optional[str] = None,
    notifier: Optional[NotificationService] = None,
) -> Order:
    status = OrderStatus(status)
    if status not in (OrderStatus.EN_ATTENTE, OrderStatus.VALIDEE):
        raise ValidationError("Une commande est créée en attente ou validée.")

    if not client_id:
        raise MissingClientError()
    if session.get(Client, client_id) is None:
        raise MissingClientError("Client introuvable.")

    catalog = load_catalog(session)
    kept = validate(list(lines), catalog, client_id)

    try:
        order = Order(
            order_number=_unique_order_number(session),
            client_id=client_id,
            status=status.value,
            created_by=created_by,
        )
        for line in kept:
            article = catalog[line.article_id]
            # prix de référence = catalogue, pas le brouillon
            order.lines.append(
                OrderLine(article_id=article.id, quantity=line.quantity, unit_price=Decimal(str(article.unit_price)))
            )
        order.total_amount = compute_total(order.lines)

        session.add(order)
        session.flush()

        critical: List[Article] = []
        if status == OrderStatus.VALIDEE:
            critical = _reserve_stock(session, order, catalog)

        session.commit()
    except StockError:
        session.rollback()
        raise
    except (IntegrityError, DataError) as e:
        session.rollback()
        log.exception("❌ DB error on order submit")
        raise PersistenceError(f"Erreur base de données: {str(getattr(e, 'orig', e))[:500]}") from e

    session.refresh(order)
    log.info("[ORDER] %s créée (%s, %s)", order.order_number, order.status, order.total_amount)

    _notify(notifier, NotificationChannel.ORDERS)
    _notify(notifier, NotificationChannel.STOCKS, len(critical))
    return order


def update_status(
    session: Session,
    order_id: int,
    status: OrderStatus,
    notifier: Optional[NotificationService] = None,
) -> Order:
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Commande introuvable")

    current = OrderStatus(order.status)
    target = OrderStatus(status)
    if target == current:
        return order
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)

    critical: List[Article] = []
    try:
        if target == OrderStatus.VALIDEE:
            critical = _reserve_stock(session, order, load_catalog(session))
        order.status = target.value
        session.add(order)
        session.commit()
    except StockError:
        session.rollback()
        raise
    except (IntegrityError, DataError) as e:
        session.rollback()
        log.exception("❌ DB error on order status update")
        raise PersistenceError(f"Erreur base de données: {str(getattr(e, 'orig', e))[:500]}") from e

    session.refresh(order)
    _notify(notifier, NotificationChannel.STOCKS, len(critical))
    return order


def delete(session: Session, order_id: int) -> None:
    """Supprime lignes puis entête (et les fiches documents liées) dans une transaction."""
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Commande introuvable")

    try:
        for doc in session.exec(select(Document).where(Document.order_id == order_id)).all():
            session.delete(doc)
        for line in list(order.lines):
            session.delete(line)
        session.flush()
        session.delete(order)
        session.commit()
    except (IntegrityError, DataError) as e:
        session.rollback()
        log.exception("❌ DB error on order delete")
        raise PersistenceError(f"Erreur base de données: {str(getattr(e, 'orig', e))[:500]}") from e


# ---------------------------------------------------------
#  Lecture
# ---------------------------------------------------------

def to_read(order: Order) -> OrderRead:
    lines = []
    for line in order.lines:
        article = line.article
        lines.append(
            OrderLineRead(
                id=line.id,
                article_id=line.article_id,
                article_reference=article.reference if article else None,
                article_designation=article.designation if article else None,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=Decimal(line.unit_price) * line.quantity,
            )
        )
    return OrderRead(
        id=order.id,
        order_number=order.order_number,
        client_id=order.client_id,
        client_name=order.client.name if order.client else None,
        status=order.status,
        total_amount=order.total_amount,
        created_by=order.created_by,
        created_at=order.created_at,
        lines=lines,
    )


def list_orders(session: Session) -> List[OrderRead]:
    """Toutes les commandes, plus récentes d'abord, avec client et lignes."""
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    return [to_read(order) for order in session.exec(stmt).all()]


def search_orders(
    orders: List[OrderRead],
    search: str = "",
    status: str = "all",
    page: int = 1,
    page_size: int = 10,
) -> Dict[str, Any]:
    query = (search or "").strip().lower()

    def matches(order: OrderRead) -> bool:
        numero = (order.order_number or "").lower()
        client = (order.client_name or "").lower()
        ok_search = not query or query in numero or query in client
        ok_status = status == "all" or order.status == status
        return ok_search and ok_status

    filtered = [o for o in orders if matches(o)]
    page_size = max(1, page_size)
    total_pages = max(1, math.ceil(len(filtered) / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size

    return {
        "items": filtered[start:start + page_size],
        "total": len(filtered),
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
    }


def qr_payload(order: OrderRead) -> Dict[str, Any]:
    return {
        "type": "COMMANDE",
        "id": order.id,
        "numero_commande": order.order_number,
        "client": order.client_name or "",
        "statut": order.status or "",
        "montant_total": float(order.total_amount or 0),
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }
