from typing import Any, Dict, List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from app.db.session import get_session
from app.models import Client
from app.services import analytics
from app.services import orders as order_service
from app.services.stock import load_catalog

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)

SessionDep = Depends(get_session)

RangeParam = Literal["week", "month", "six_months", "year"]
WindowParam = Literal["30", "90", "180", "365", "all"]


def _check_limit(limit: int) -> None:
    if limit not in analytics.TOP_LIMITS:
        raise HTTPException(status_code=422, detail="limit doit valoir 5, 8 ou 10")


def _summary(session: Session, recent: int, range_: str) -> Dict[str, Any]:
    orders = order_service.list_orders(session)
    articles = sorted(load_catalog(session).values(), key=lambda a: a.reference or "")
    clients = session.exec(select(Client)).all()
    return analytics.dashboard_summary(orders, articles, clients, recent=recent, range_=range_)


@router.get("/admin", summary="Tableau de bord administrateur")
def admin_dashboard(
    session: Session = SessionDep,
    range: RangeParam = "year",
) -> Dict[str, Any]:
    return _summary(session, recent=5, range_=range)


@router.get("/gestionnaire", summary="Tableau de bord gestionnaire")
def gestionnaire_dashboard(
    session: Session = SessionDep,
    range: RangeParam = "month",
) -> Dict[str, Any]:
    return _summary(session, recent=3, range_=range)


@router.get("/series", summary="Commandes et montants par période")
def order_series(
    session: Session = SessionDep,
    range: RangeParam = "year",
) -> List[Dict[str, Any]]:
    """
    - week / month → buckets journaliers (7 / 30)
    - six_months / year → buckets mensuels (6 / 12)
    """
    return analytics.bucket_orders(order_service.list_orders(session), range)


@router.get("/top-products", summary="Classement des articles")
def top_products(
    session: Session = SessionDep,
    metric: Literal["quantity", "revenue", "order_count"] = "revenue",
    limit: int = Query(5, description="5, 8 ou 10"),
    window: WindowParam = "all",
) -> List[Dict[str, Any]]:
    _check_limit(limit)
    return analytics.top_products(order_service.list_orders(session), metric, limit, window)


@router.get("/top-clients", summary="Classement des clients")
def top_clients(
    session: Session = SessionDep,
    metric: Literal["revenue", "order_count", "average_ticket"] = "revenue",
    limit: int = Query(5, description="5, 8 ou 10"),
    window: WindowParam = "all",
) -> List[Dict[str, Any]]:
    _check_limit(limit)
    return analytics.top_clients(order_service.list_orders(session), metric, limit, window)


@router.get("/insights", summary="Indicateurs de concentration et de traitement")
def insights(
    session: Session = SessionDep,
    window: WindowParam = "all",
) -> Dict[str, Any]:
    return analytics.insights(order_service.list_orders(session), window)
