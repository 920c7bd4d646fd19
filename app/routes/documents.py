import base64
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.db.session import get_session
from app.errors import PartialWriteWarning
from app.models import Document, DocumentCreate, DocumentGenerate, DocumentRead, DocumentUpdate, Order
from app.services import documents as document_service
from app.services.storage_client import StorageClient, get_storage_client

router = APIRouter(
    prefix="/documents",
    tags=["documents"],
)
log = logging.getLogger("uvicorn.error")

SessionDep = Depends(get_session)


def optional_storage() -> Optional[StorageClient]:
    try:
        return get_storage_client()
    except RuntimeError:
        log.warning("[DOCS] Stockage non configuré, génération locale uniquement")
        return None


StorageDep = Depends(optional_storage)


@router.get(
    "",
    response_model=List[DocumentRead],
    summary="Lister les documents",
)
def list_documents(
    session: Session = SessionDep,
) -> List[DocumentRead]:
    """Plus récents d'abord, enrichis du numéro de commande, du montant et du client."""
    return document_service.list_documents(session)


@router.post(
    "",
    response_model=DocumentRead,
    status_code=201,
    summary="Enregistrer un document existant",
)
def create_document(
    payload: DocumentCreate,
    session: Session = SessionDep,
) -> DocumentRead:
    return document_service.create_document(session, payload.document_type, payload.order_id, payload.file_url)


@router.post(
    "/generate",
    response_model=DocumentRead,
    status_code=201,
    summary="Générer le PDF d'une commande et l'archiver",
    responses={202: {"description": "PDF généré localement, synchronisation impossible"}},
)
def generate_document(
    payload: DocumentGenerate,
    session: Session = SessionDep,
    storage: Optional[StorageClient] = StorageDep,
):
    """
    - 201 → PDF rendu, uploadé et enregistré
    - 202 → PDF rendu mais non synchronisé; il est renvoyé en base64 pour
      que le front puisse l'afficher quand même
    """
    try:
        return document_service.generate_document(session, storage, payload.order_id, payload.document_type)
    except PartialWriteWarning as w:
        return JSONResponse(
            status_code=202,
            content={
                "ok": False,
                "degraded": True,
                "detail": w.message,
                "order_id": payload.order_id,
                "document_type": payload.document_type.value,
                "pdf_base64": base64.b64encode(w.payload).decode("ascii") if w.payload else None,
            },
        )


@router.put(
    "/{document_id}",
    response_model=DocumentRead,
    summary="Mettre à jour un document",
)
def update_document(
    document_id: int,
    payload: DocumentUpdate,
    session: Session = SessionDep,
) -> DocumentRead:
    doc = session.get(Document, document_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document introuvable")

    data = payload.model_dump(exclude_unset=True)
    if data.get("document_type") is not None:
        data["document_type"] = data["document_type"].value
    for key, value in data.items():
        setattr(doc, key, value)

    session.add(doc)
    session.commit()
    session.refresh(doc)
    return document_service.to_read(doc, session.get(Order, doc.order_id))


@router.delete(
    "/{document_id}",
    status_code=204,
    summary="Supprimer un document",
)
def delete_document(
    document_id: int,
    session: Session = SessionDep,
) -> None:
    doc = session.get(Document, document_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document introuvable")
    session.delete(doc)
    session.commit()
