from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlmodel import Session

from app.db.session import get_session
from app.models import (
    DocumentType,
    DraftRead,
    Order,
    OrderCreate,
    OrderPage,
    OrderRead,
    OrderStatusUpdate,
)
from app.services import documents as document_service
from app.services import orders as order_service
from app.services.notifications import NotificationService, get_notification_service
from app.services.order_draft import OrderDraft
from app.services.stock import load_catalog

router = APIRouter(
    prefix="/commandes",
    tags=["commandes"],
)

SessionDep = Depends(get_session)
NotifierDep = Depends(get_notification_service)


def _get_order(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Commande introuvable")
    return order


@router.get(
    "",
    response_model=List[OrderRead],
    summary="Lister les commandes",
)
def list_orders(
    session: Session = SessionDep,
) -> List[OrderRead]:
    """Toutes les commandes, plus récentes d'abord, avec nom du client et lignes."""
    return order_service.list_orders(session)


@router.get(
    "/admin",
    response_model=OrderPage,
    summary="Commandes: recherche, filtre statut, pagination",
)
def search_orders(
    session: Session = SessionDep,
    search: str = "",
    status: str = Query("all", description="all | en_attente | validee | livree | annulee"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    return order_service.search_orders(order_service.list_orders(session), search, status, page, page_size)


@router.post(
    "/preview",
    response_model=DraftRead,
    summary="Recalculer un brouillon de commande",
)
def preview_order(
    payload: OrderCreate,
    session: Session = SessionDep,
) -> Dict[str, Any]:
    """
    Rejoue la saisie sur le stock courant: quantités bornées au stock,
    prix repris du catalogue, total recalculé. N'écrit rien.
    """
    draft = OrderDraft.from_lines(load_catalog(session), payload.client_id, payload.lines)
    return draft.to_payload()


@router.post(
    "",
    response_model=OrderRead,
    status_code=201,
    summary="Créer une commande",
)
def create_order(
    payload: OrderCreate,
    session: Session = SessionDep,
    notifier: NotificationService = NotifierDep,
) -> OrderRead:
    order = order_service.submit(
        session,
        payload.client_id,
        payload.lines,
        payload.status,
        created_by=payload.created_by,
        notifier=notifier,
    )
    return order_service.to_read(order)


@router.get(
    "/{order_id}",
    response_model=OrderRead,
    summary="Récupérer une commande",
)
def get_order(
    order_id: int,
    session: Session = SessionDep,
) -> OrderRead:
    return order_service.to_read(_get_order(session, order_id))


@router.patch(
    "/{order_id}",
    response_model=OrderRead,
    summary="Changer le statut d'une commande",
)
def update_order(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = SessionDep,
    notifier: NotificationService = NotifierDep,
) -> OrderRead:
    _get_order(session, order_id)
    order = order_service.update_status(session, order_id, payload.status, notifier=notifier)
    return order_service.to_read(order)


@router.delete(
    "/{order_id}",
    status_code=204,
    summary="Supprimer une commande",
)
def delete_order(
    order_id: int,
    session: Session = SessionDep,
) -> None:
    _get_order(session, order_id)
    order_service.delete(session, order_id)


@router.get(
    "/{order_id}/qr",
    summary="Contenu du QR code d'une commande",
)
def order_qr(
    order_id: int,
    session: Session = SessionDep,
) -> Dict[str, Any]:
    return order_service.qr_payload(order_service.to_read(_get_order(session, order_id)))


@router.get(
    "/{order_id}/pdf",
    summary="Générer le PDF d'une commande (sans l'enregistrer)",
)
def order_pdf(
    order_id: int,
    document_type: DocumentType = DocumentType.PROFORMA,
    session: Session = SessionDep,
) -> Response:
    order = _get_order(session, order_id)
    pdf = document_service.render_for_order(session, order_id, document_type)
    file_name = f"{document_type.value}-{order.order_number}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{file_name}"'},
    )
