# app/errors.py
"""
Erreurs métier de l'ERP.

Les services lèvent ces exceptions; les routes les traduisent en
HTTPException (voir ``http_status``).
"""
from typing import Optional


class ErpError(Exception):
    """Racine de toutes les erreurs métier."""

    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ─────────────────────────────────────────
# VALIDATION
# ─────────────────────────────────────────

class ValidationError(ErpError):
    http_status = 400


class MissingClientError(ValidationError):
    def __init__(self, message: str = "Veuillez selectionner un client.") -> None:
        super().__init__(message)


class EmptyOrderError(ValidationError):
    def __init__(self, message: str = "Ajoutez au moins un article.") -> None:
        super().__init__(message)


class UnknownArticleError(ValidationError):
    def __init__(self, article_id: int) -> None:
        super().__init__(f"Article introuvable: {article_id}")
        self.article_id = article_id


class InvalidTransitionError(ValidationError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Transition de statut interdite: {current} -> {target}")
        self.current = current
        self.target = target


# ─────────────────────────────────────────
# STOCK
# ─────────────────────────────────────────

class StockError(ErpError):
    http_status = 409

    def __init__(self, message: str, article_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.article_id = article_id


class OutOfStockError(StockError):
    def __init__(self, designation: str, article_id: Optional[int] = None) -> None:
        super().__init__(f"Article en rupture de stock: {designation}", article_id)
        self.designation = designation


class InsufficientStockError(StockError):
    def __init__(
        self,
        designation: str,
        requested: int,
        available: int,
        article_id: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"Stock insuffisant pour {designation}: demandé {requested}, disponible {available}",
            article_id,
        )
        self.designation = designation
        self.requested = requested
        self.available = available


# ─────────────────────────────────────────
# PERSISTANCE
# ─────────────────────────────────────────

class NotFoundError(ErpError):
    http_status = 404


class PersistenceError(ErpError):
    http_status = 500


class PartialWriteWarning(ErpError):
    """
    Succès dégradé: une partie de l'opération a abouti, la synchro a échoué.
    ``payload`` porte ce qui a pu être produit (ex: le PDF généré localement).
    """

    http_status = 202

    def __init__(self, message: str, payload: Optional[bytes] = None) -> None:
        super().__init__(message)
        self.payload = payload
