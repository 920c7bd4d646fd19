# app/services/order_draft.py
"""
Brouillon de commande en cours de saisie.

Pendant l'édition rien n'est rejeté: les quantités sont ramenées dans les
bornes du stock connu. Le contrôle bloquant se fait à la soumission
(voir ``app.services.stock.validate``).
"""
from dataclasses import dataclass
from decimal import Decimal
from itertools import count
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass
class DraftLine:
    line_id: int
    article_id: Optional[int] = None
    unit_price: Decimal = Decimal("0")
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


def _to_int(value: Any, default: int = 1) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class OrderDraft:
    def __init__(self, catalog: Mapping[int, Any]) -> None:
        # catalog: article_id -> objet avec unit_price / stock_quantity
        self.catalog = catalog
        self.client_id: Optional[int] = None
        self.lines: List[DraftLine] = []
        self._ids = count(1)
        self.add_line()

    @classmethod
    def from_lines(cls, catalog: Mapping[int, Any], client_id: Optional[int], lines: Iterable[Any]) -> "OrderDraft":
        """Rejoue une saisie (article puis quantité, ligne par ligne)."""
        draft = cls(catalog)
        draft.select_client(client_id)
        entries = list(lines)
        if entries:
            draft.lines = []
        for entry in entries:
            line_id = draft.add_line()
            draft.set_line_article(line_id, entry.article_id)
            draft.set_line_quantity(line_id, entry.quantity)
        return draft

    # -------------------------
    # Client
    # -------------------------
    def select_client(self, client_id: Optional[int]) -> None:
        self.client_id = client_id

    # -------------------------
    # Lignes
    # -------------------------
    def add_line(self) -> int:
        line = DraftLine(line_id=next(self._ids))
        self.lines.append(line)
        return line.line_id

    def remove_line(self, line_id: int) -> None:
        self.lines = [line for line in self.lines if line.line_id != line_id]

    def get_line(self, line_id: int) -> Optional[DraftLine]:
        for line in self.lines:
            if line.line_id == line_id:
                return line
        return None

    def set_line_article(self, line_id: int, article_id: Optional[int]) -> None:
        line = self.get_line(line_id)
        if line is None:
            return

        line.article_id = article_id
        article = self.catalog.get(article_id) if article_id is not None else None
        if article is None:
            line.unit_price = Decimal("0")
            if article_id is None:
                line.quantity = max(1, line.quantity)
            return

        line.unit_price = Decimal(str(article.unit_price))
        line.quantity = self._clamp(article, line.quantity)

    def set_line_quantity(self, line_id: int, requested: Any) -> None:
        line = self.get_line(line_id)
        if line is None:
            return

        qty = _to_int(requested)
        article = self.catalog.get(line.article_id) if line.article_id is not None else None
        if article is None:
            # pas encore d'article: la quantité n'a pas de borne haute
            line.quantity = max(1, qty)
            return

        line.quantity = self._clamp(article, qty)

    @staticmethod
    def _clamp(article: Any, qty: int) -> int:
        stock = int(article.stock_quantity or 0)
        if stock <= 0:
            return 0
        return min(max(1, qty), stock)

    # -------------------------
    # Totaux
    # -------------------------
    def compute_total(self) -> Decimal:
        return sum(
            (line.subtotal for line in self.lines if line.article_id is not None),
            Decimal("0"),
        )

    def reset(self) -> None:
        self.client_id = None
        self.lines = []
        self.add_line()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "lines": [
                {
                    "line_id": line.line_id,
                    "article_id": line.article_id,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                    "subtotal": line.subtotal,
                }
                for line in self.lines
            ],
            "total": self.compute_total(),
        }
