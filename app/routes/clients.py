from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.db.session import get_session
from app.models import Client, ClientCreate, ClientRead, ClientUpdate, Order
from app.services.notifications import NotificationChannel, NotificationService, get_notification_service

router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)

SessionDep = Depends(get_session)
NotifierDep = Depends(get_notification_service)


@router.get(
    "",
    response_model=List[ClientRead],
    summary="Lister les clients",
)
def list_clients(
    session: Session = SessionDep,
    search: Optional[str] = None,
) -> List[ClientRead]:
    """
    Retourne les clients.
    - search → filtre sur nom, téléphone ou adresse
    """
    clients = session.exec(select(Client).order_by(Client.name)).all()
    term = (search or "").strip().lower()
    if not term:
        return clients

    return [
        c for c in clients
        if term in (c.name or "").lower()
        or term in (c.phone or "")
        or term in (c.address or "").lower()
    ]


@router.get(
    "/{client_id}",
    response_model=ClientRead,
    summary="Récupérer un client",
)
def get_client(
    client_id: int,
    session: Session = SessionDep,
) -> ClientRead:
    client = session.get(Client, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client introuvable")
    return client


@router.post(
    "",
    response_model=ClientRead,
    status_code=201,
    summary="Créer un client",
)
def create_client(
    payload: ClientCreate,
    session: Session = SessionDep,
    notifier: NotificationService = NotifierDep,
) -> ClientRead:
    client = Client.model_validate(payload)
    session.add(client)
    session.commit()
    session.refresh(client)

    notifier.notify(NotificationChannel.CLIENTS)
    return client


@router.put(
    "/{client_id}",
    response_model=ClientRead,
    summary="Mettre à jour un client",
)
def update_client(
    client_id: int,
    payload: ClientUpdate,
    session: Session = SessionDep,
) -> ClientRead:
    client = session.get(Client, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client introuvable")

    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is None:
        raise HTTPException(status_code=422, detail="Champ obligatoire: name")

    for key, value in data.items():
        setattr(client, key, value)

    session.add(client)
    session.commit()
    session.refresh(client)
    return client


@router.delete(
    "/{client_id}",
    status_code=204,
    summary="Supprimer un client",
)
def delete_client(
    client_id: int,
    session: Session = SessionDep,
) -> None:
    client = session.get(Client, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client introuvable")

    has_orders = session.exec(select(Order.id).where(Order.client_id == client_id)).first()
    if has_orders is not None:
        raise HTTPException(status_code=409, detail="Client référencé par des commandes")

    session.delete(client)
    session.commit()
