# app/services/documents.py
"""
Génération des documents de commande.

Rendu PDF -> upload -> fiche en base. Upload et insertion touchent deux
systèmes différents: si la fiche ne peut pas être écrite après l'upload,
le fichier est retiré du stockage (compensation). Dans tous les cas le PDF
rendu reste disponible via PartialWriteWarning.
"""
import logging
import time
from typing import List, Optional

from sqlalchemy.exc import DataError, IntegrityError
from sqlmodel import Session, select

from app.errors import NotFoundError, PartialWriteWarning, PersistenceError
from app.models.document import Document, DocumentRead, DocumentType
from app.models.order import Order
from app.services import orders as order_service
from app.services.document_pdf import document_filename, render_order_pdf
from app.services.storage_client import StorageClient

log = logging.getLogger("uvicorn.error")


def to_read(doc: Document, order: Optional[Order] = None) -> DocumentRead:
    return DocumentRead(
        id=doc.id,
        document_type=doc.document_type,
        order_id=doc.order_id,
        file_url=doc.file_url,
        created_at=doc.created_at,
        order_number=order.order_number if order else None,
        order_total=order.total_amount if order else None,
        client_name=order.client.name if order and order.client else None,
    )


def list_documents(session: Session) -> List[DocumentRead]:
    docs = session.exec(select(Document).order_by(Document.created_at.desc(), Document.id.desc())).all()
    return [to_read(doc, session.get(Order, doc.order_id)) for doc in docs]


def render_for_order(session: Session, order_id: int, document_type: DocumentType) -> bytes:
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Commande introuvable.")
    client = order.client
    return render_order_pdf(
        order_service.to_read(order),
        DocumentType(document_type).value,
        client_phone=(client.phone or "") if client else "",
        client_address=(client.address or "") if client else "",
    )


def generate_document(
    session: Session,
    storage: Optional[StorageClient],
    order_id: int,
    document_type: DocumentType = DocumentType.PROFORMA,
) -> DocumentRead:
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Commande introuvable.")

    document_type = DocumentType(document_type)
    pdf = render_for_order(session, order_id, document_type)
    file_name = document_filename(order_service.to_read(order), document_type.value)
    path = f"documents/{order.id}/{int(time.time() * 1000)}-{file_name}"

    if storage is None:
        raise PartialWriteWarning("PDF généré localement. Synchronisation serveur impossible: stockage non configuré.", pdf)

    try:
        url = storage.upload(path, pdf, "application/pdf")
    except Exception as e:
        log.exception("❌ Upload document failed (%s)", path)
        raise PartialWriteWarning(f"PDF généré localement. Synchronisation serveur impossible: {e}", pdf) from e

    doc = Document(document_type=document_type.value, order_id=order.id, file_url=url)
    try:
        session.add(doc)
        session.commit()
    except (IntegrityError, DataError) as e:
        session.rollback()
        log.exception("❌ DB error on document insert, removing %s", path)
        try:
            storage.remove(path)
        except Exception:
            log.exception("❌ Compensation failed: %s reste dans le stockage", path)
        raise PartialWriteWarning(
            f"PDF généré localement. Synchronisation serveur impossible: {str(getattr(e, 'orig', e))[:500]}",
            pdf,
        ) from e

    session.refresh(doc)
    return to_read(doc, order)


def create_document(session: Session, document_type: DocumentType, order_id: int, file_url: Optional[str]) -> DocumentRead:
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Commande introuvable.")

    doc = Document(document_type=DocumentType(document_type).value, order_id=order_id, file_url=file_url)
    try:
        session.add(doc)
        session.commit()
    except (IntegrityError, DataError) as e:
        session.rollback()
        raise PersistenceError(f"Erreur base de données: {str(getattr(e, 'orig', e))[:500]}") from e
    session.refresh(doc)
    return to_read(doc, order)
