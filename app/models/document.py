from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class DocumentType(str, Enum):
    FACTURE = "facture"
    PROFORMA = "proforma"
    BON_LIVRAISON = "bon_livraison"


DOCUMENT_LABELS = {
    DocumentType.FACTURE: "Facture",
    DocumentType.PROFORMA: "Facture pro-forma",
    DocumentType.BON_LIVRAISON: "Bon de livraison",
}


class DocumentBase(SQLModel):
    document_type: str = Field(default=DocumentType.PROFORMA.value)
    order_id: int = Field(index=True, foreign_key="commande.id")
    file_url: Optional[str] = None


class Document(DocumentBase, table=True):
    __tablename__ = "document"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)


class DocumentCreate(SQLModel):
    document_type: DocumentType = DocumentType.PROFORMA
    order_id: int
    file_url: Optional[str] = None


class DocumentGenerate(SQLModel):
    document_type: DocumentType = DocumentType.PROFORMA
    order_id: int


class DocumentUpdate(SQLModel):
    document_type: Optional[DocumentType] = None
    file_url: Optional[str] = None


class DocumentRead(DocumentBase):
    id: int
    created_at: datetime
    # enrichissement pour l'affichage
    order_number: Optional[str] = None
    order_total: Optional[Decimal] = None
    client_name: Optional[str] = None
