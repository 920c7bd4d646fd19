# app/routes/movement.py

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from app.db.session import get_session
from app.models import Article
from app.services.notifications import NotificationChannel, NotificationService, get_notification_service
from app.services.stock import apply_movement, is_critical

router = APIRouter(
    tags=["movement"],
)

SessionDep = Depends(get_session)
NotifierDep = Depends(get_notification_service)


@router.post(
    "/movement",
    summary="Enregistrer un mouvement et mettre à jour le stock",
)
def record_movement(
    type: Literal["IN", "OUT", "SALE", "ADJUST"] = Query(..., description="Type de mouvement"),
    article_id: int = Query(..., description="ID de l'article"),
    qty: int = Query(..., ge=0, description="Quantité (> 0 sauf ADJUST)"),
    note: Optional[str] = Query(None, description="Note optionnelle (non stockée pour l’instant)"),
    session: Session = SessionDep,
    notifier: NotificationService = NotifierDep,
):
    """
    Applique un mouvement sur le stock d'un article.

    - IN      : quantité += qty
    - OUT     : quantité -= qty (jamais < 0)
    - SALE    : quantité -= qty (jamais < 0)
    - ADJUST  : quantité = qty (ajustement absolu)

    Un article qui passe sous le seuil critique déclenche une notification
    "Stock critique".
    """
    if qty == 0 and type != "ADJUST":
        raise HTTPException(status_code=422, detail="Quantité > 0 requise")

    article = session.get(Article, article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article introuvable")

    was_critical = is_critical(article)
    apply_movement(article, type, qty)

    session.add(article)
    session.commit()
    session.refresh(article)

    if is_critical(article) and not was_critical:
        notifier.notify(NotificationChannel.STOCKS)

    return {
        "ok": True,
        "type": type,
        "article_id": article.id,
        "reference": article.reference,
        "stock_quantity": article.stock_quantity,
        "critical": is_critical(article),
    }
