from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db.session import get_session
from app.models import StockRead
from app.services.stock import CRITICAL_STOCK_THRESHOLD, is_critical, load_catalog

router = APIRouter(
    prefix="/stocks",
    tags=["stocks"],
)

SessionDep = Depends(get_session)


@router.get(
    "",
    response_model=List[StockRead],
    summary="État des stocks",
)
def list_stocks(
    session: Session = SessionDep,
    search: Optional[str] = None,
    critical_only: bool = False,
) -> List[StockRead]:
    """
    Stock par article, avec indicateur `critical` (quantité <= seuil).
    - search → filtre sur référence ou désignation
    - critical_only → uniquement les alertes
    """
    term = (search or "").strip().lower()
    rows = []
    for article in sorted(load_catalog(session).values(), key=lambda a: a.reference or ""):
        if term and term not in (article.reference or "").lower() and term not in (article.designation or "").lower():
            continue
        critical = is_critical(article, CRITICAL_STOCK_THRESHOLD)
        if critical_only and not critical:
            continue
        rows.append(StockRead(**article.model_dump(), critical=critical))
    return rows
