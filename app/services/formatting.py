from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CURRENCY = "FCFA"


def format_money(value: Any, decimals: int = 2, currency: str = CURRENCY) -> str:
    """1234.5 -> '1 234,50 FCFA' (séparateur de milliers: espace, décimale: virgule)."""
    amount = Decimal(str(value or 0))
    quant = Decimal(1).scaleb(-decimals)
    amount = amount.quantize(quant, rounding=ROUND_HALF_UP)

    text = f"{abs(amount):,.{decimals}f}"          # ex: 1,234.50
    text = text.replace(",", " ").replace(".", ",")
    sign = "-" if amount < 0 else ""
    return f"{sign}{text} {currency}".strip()
