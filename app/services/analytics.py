# app/services/analytics.py
"""
Agrégats du tableau de bord, calculés en mémoire sur l'historique complet.

Tout est recalculé à chaque appel: un passage sur (commandes x lignes),
pas de cache ni de mise à jour incrémentale.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.services.stock import stock_alerts

RANGES = ("week", "month", "six_months", "year")
DAY_RANGES = {"week": 7, "month": 30}
MONTH_RANGES = {"six_months": 6, "year": 12}

WINDOWS = {"30": 30, "90": 90, "180": 180, "365": 365, "all": None}
TOP_LIMITS = (5, 8, 10)

PRODUCT_METRICS = ("quantity", "revenue", "order_count")
CLIENT_METRICS = ("revenue", "order_count", "average_ticket")

# seuils des messages d'analyse
CLIENT_CONCENTRATION_THRESHOLD = Decimal("0.35")
PRODUCT_CONCENTRATION_THRESHOLD = Decimal("0.25")
PENDING_RATE_THRESHOLD = Decimal("0.25")

MONTH_LABELS = ("janv.", "févr.", "mars", "avr.", "mai", "juin",
                "juil.", "août", "sept.", "oct.", "nov.", "déc.")

ZERO = Decimal("0")


# ---------------------------------------------------------
#  Helpers
# ---------------------------------------------------------

def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _amount(value: Any) -> Decimal:
    if value is None or value == "":
        return ZERO
    return Decimal(str(value))


def _as_utc(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


# ---------------------------------------------------------
#  Séries temporelles
# ---------------------------------------------------------

def build_buckets(range_: str, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Buckets contigus qui se terminent à ``now`` (jour ou mois courant inclus)."""
    current = _now(now)
    buckets: List[Dict[str, Any]] = []

    if range_ in DAY_RANGES:
        days = DAY_RANGES[range_]
        today = current.date()
        for i in range(days):
            day: date = today - timedelta(days=days - 1 - i)
            buckets.append({
                "key": f"{day.year}-{day.month:02d}-{day.day:02d}",
                "label": day.strftime("%d/%m"),
                "count": 0,
                "total": ZERO,
            })
        return buckets

    if range_ in MONTH_RANGES:
        months = MONTH_RANGES[range_]
        for i in range(months):
            year, month = _shift_month(current.year, current.month, -(months - 1 - i))
            buckets.append({
                "key": f"{year}-{month:02d}",
                "label": MONTH_LABELS[month - 1],
                "count": 0,
                "total": ZERO,
            })
        return buckets

    raise ValueError(f"Période inconnue: {range_}")


def bucket_orders(orders: Iterable[Any], range_: str = "year", now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    buckets = build_buckets(range_, now)
    index = {b["key"]: b for b in buckets}
    daily = range_ in DAY_RANGES

    for order in orders:
        created = _as_utc(_get(order, "created_at"))
        if created is None:
            continue
        key = (
            f"{created.year}-{created.month:02d}-{created.day:02d}" if daily
            else f"{created.year}-{created.month:02d}"
        )
        bucket = index.get(key)
        if bucket is not None:
            bucket["count"] += 1
            bucket["total"] += _amount(_get(order, "total_amount"))

    return buckets


# ---------------------------------------------------------
#  Classements
# ---------------------------------------------------------

def filter_window(orders: Iterable[Any], window: Optional[str] = "all", now: Optional[datetime] = None) -> List[Any]:
    if window is None or str(window) == "all":
        return list(orders)
    if str(window) not in WINDOWS:
        raise ValueError(f"Fenêtre inconnue: {window}")

    since = _now(now) - timedelta(days=WINDOWS[str(window)])
    kept = []
    for order in orders:
        created = _as_utc(_get(order, "created_at"))
        if created is not None and created >= since:
            kept.append(order)
    return kept


def _rank(entries: List[Dict[str, Any]], metric: str, limit: int) -> List[Dict[str, Any]]:
    # sorted() est stable: à égalité, l'ordre de première apparition est gardé
    ranked = sorted(entries, key=lambda e: e[metric], reverse=True)
    return ranked[:max(0, limit)]


def top_products(
    orders: Iterable[Any],
    metric: str = "revenue",
    limit: int = 5,
    window: Optional[str] = "all",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    if metric not in PRODUCT_METRICS:
        raise ValueError(f"Critère inconnu: {metric}")

    stats: Dict[Any, Dict[str, Any]] = {}
    for order in filter_window(orders, window, now):
        order_id = _get(order, "id")
        for line in _get(order, "lines") or []:
            article_id = _get(line, "article_id")
            if article_id is None:
                continue
            entry = stats.get(article_id)
            if entry is None:
                entry = stats[article_id] = {
                    "article_id": article_id,
                    "reference": _get(line, "article_reference"),
                    "designation": _get(line, "article_designation"),
                    "quantity": 0,
                    "revenue": ZERO,
                    "orders": set(),
                }
            qty = int(_get(line, "quantity") or 0)
            entry["quantity"] += qty
            entry["revenue"] += _amount(_get(line, "unit_price")) * qty
            entry["orders"].add(order_id)

    entries = []
    for entry in stats.values():
        entry["order_count"] = len(entry.pop("orders"))
        if entry["quantity"] > 0 or entry["revenue"] > 0:
            entries.append(entry)
    return _rank(entries, metric, limit)


def top_clients(
    orders: Iterable[Any],
    metric: str = "revenue",
    limit: int = 5,
    window: Optional[str] = "all",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    if metric not in CLIENT_METRICS:
        raise ValueError(f"Critère inconnu: {metric}")

    stats: Dict[Any, Dict[str, Any]] = {}
    for order in filter_window(orders, window, now):
        client_id = _get(order, "client_id")
        if client_id is None:
            continue
        entry = stats.get(client_id)
        if entry is None:
            entry = stats[client_id] = {
                "client_id": client_id,
                "name": _get(order, "client_name"),
                "order_count": 0,
                "revenue": ZERO,
            }
        entry["order_count"] += 1
        entry["revenue"] += _amount(_get(order, "total_amount"))

    entries = list(stats.values())
    for entry in entries:
        entry["average_ticket"] = (
            (entry["revenue"] / entry["order_count"]).quantize(Decimal("0.01"))
            if entry["order_count"] else ZERO
        )
    return _rank(entries, metric, limit)


# ---------------------------------------------------------
#  Analyses
# ---------------------------------------------------------

def _share(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return (part / whole).quantize(Decimal("0.0001"))


def insights(orders: Iterable[Any], window: Optional[str] = "all", now: Optional[datetime] = None) -> Dict[str, Any]:
    scoped = filter_window(orders, window, now)
    revenue = sum((_amount(_get(o, "total_amount")) for o in scoped), ZERO)

    best_client = top_clients(scoped, "revenue", 1)
    best_product = top_products(scoped, "revenue", 1)
    client_share = _share(best_client[0]["revenue"], revenue) if best_client else ZERO
    product_share = _share(best_product[0]["revenue"], revenue) if best_product else ZERO

    pending = sum(1 for o in scoped if _get(o, "status") == "en_attente")
    pending_rate = (
        (Decimal(pending) / Decimal(len(scoped))).quantize(Decimal("0.0001"))
        if scoped else ZERO
    )

    messages = []
    if client_share >= CLIENT_CONCENTRATION_THRESHOLD:
        messages.append({
            "kind": "client_concentration",
            "message": "Forte concentration client: un seul client pèse une part importante du chiffre d'affaires.",
        })
    if product_share >= PRODUCT_CONCENTRATION_THRESHOLD:
        messages.append({
            "kind": "product_concentration",
            "message": "Concentration produit: un article porte une grande part des ventes.",
        })
    if pending_rate >= PENDING_RATE_THRESHOLD:
        messages.append({
            "kind": "slow_processing",
            "message": "Traitement lent: beaucoup de commandes restent en attente.",
        })

    return {
        "revenue": revenue,
        "top_client_share": client_share,
        "top_product_share": product_share,
        "pending_count": pending,
        "pending_rate": pending_rate,
        "messages": messages,
    }


def dashboard_summary(
    orders: List[Any],
    articles: List[Any],
    clients: List[Any],
    recent: int = 5,
    range_: str = "year",
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Cartes + séries du tableau de bord (``orders`` triées du plus récent au plus ancien)."""
    series = bucket_orders(orders, range_, now)
    return {
        "revenue": sum((_amount(_get(o, "total_amount")) for o in orders), ZERO),
        "order_count": len(orders),
        "client_count": len(clients),
        "article_count": len(articles),
        "stock_alerts": stock_alerts(articles),
        "recent_orders": orders[:recent],
        "series": series,
        "revenue_bars": series[-6:],
    }
