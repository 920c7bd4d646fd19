# app/services/notifications.py
"""
Compteurs de notifications par rôle, avec abonnement explicite.

Chaque mutation persiste le compteur puis publie un ``NotificationEvent``
aux abonnés (ex: la cloche du front via un flux, ou les tests).
"""
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.notification import NotificationCounter

log = logging.getLogger("uvicorn.error")

INCREMENT_ATTEMPTS = 3


class NotificationChannel(str, Enum):
    CLIENTS = "admin.clients"
    ORDERS = "admin.commandes"
    STOCKS = "admin.stocks"
    TOTAL = "admin.total"


class NotificationScope(str, Enum):
    ADMIN = "ADMIN"
    GESTIONNAIRE = "GESTIONNAIRE"
    GLOBAL = "GLOBAL"


CHANNEL_LABELS = {
    NotificationChannel.CLIENTS: "Nouveau(x) client(s)",
    NotificationChannel.ORDERS: "Nouvelle(s) commande(s)",
    NotificationChannel.STOCKS: "Stock critique",
}


def scope_for_role(role: Optional[str]) -> NotificationScope:
    value = str(role or "").upper()
    if "ADMIN" in value:
        return NotificationScope.ADMIN
    if "GESTIONNAIRE" in value:
        return NotificationScope.GESTIONNAIRE
    return NotificationScope.GLOBAL


@dataclass(frozen=True)
class NotificationEvent:
    scope: NotificationScope
    channel: Optional[NotificationChannel]   # None = remise à zéro globale
    counts: Dict[str, int] = field(default_factory=dict)


Subscriber = Callable[[NotificationEvent], None]


class NotificationService:
    def __init__(self, engine) -> None:
        self.engine = engine
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    # -------------------------
    # Abonnements
    # -------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, event: NotificationEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                log.exception("❌ Notification subscriber failed (%s)", event.channel)

    # -------------------------
    # Compteurs
    # -------------------------
    def _where(self, channel: NotificationChannel, scope: NotificationScope):
        return (
            NotificationCounter.scope == scope.value,
            NotificationCounter.channel == channel.value,
        )

    def _read(self, session: Session, channel: NotificationChannel, scope: NotificationScope) -> int:
        value = session.exec(select(NotificationCounter.count).where(*self._where(channel, scope))).first()
        return value or 0

    def get_all(self, scope: NotificationScope = NotificationScope.GLOBAL) -> Dict[str, int]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(NotificationCounter).where(NotificationCounter.scope == scope.value)
            ).all()
            return {row.channel: row.count for row in rows}

    def total(self, scope: NotificationScope = NotificationScope.GLOBAL) -> int:
        return sum(
            count for channel, count in self.get_all(scope).items()
            if channel != NotificationChannel.TOTAL.value
        )

    def increment(
        self,
        channel: NotificationChannel,
        amount: int = 1,
        scope: NotificationScope = NotificationScope.GLOBAL,
    ) -> int:
        """
        Incrément atomique côté base (UPDATE count = count + n, jamais < 0).
        Première écriture du canal: INSERT; si un autre worker l'a inséré
        entre-temps, rollback puis nouvel UPDATE.
        """
        new_count = NotificationCounter.count + amount
        stmt = (
            update(NotificationCounter)
            .where(*self._where(channel, scope))
            .values(count=case((new_count < 0, 0), else_=new_count))
        )

        for attempt in range(INCREMENT_ATTEMPTS):
            with Session(self.engine) as session:
                result = session.execute(stmt, execution_options={"synchronize_session": False})
                if result.rowcount == 0:
                    session.add(NotificationCounter(scope=scope.value, channel=channel.value, count=max(0, amount)))
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    if attempt == INCREMENT_ATTEMPTS - 1:
                        raise
                    continue
                value = self._read(session, channel, scope)
                break

        self._emit(NotificationEvent(scope, channel, self.get_all(scope)))
        return value

    def clear(self, channel: NotificationChannel, scope: NotificationScope = NotificationScope.GLOBAL) -> None:
        with Session(self.engine) as session:
            session.execute(
                update(NotificationCounter).where(*self._where(channel, scope)).values(count=0),
                execution_options={"synchronize_session": False},
            )
            session.commit()

        self._emit(NotificationEvent(scope, channel, self.get_all(scope)))

    def clear_all(self, scope: NotificationScope = NotificationScope.GLOBAL) -> None:
        with Session(self.engine) as session:
            session.execute(
                update(NotificationCounter).where(NotificationCounter.scope == scope.value).values(count=0),
                execution_options={"synchronize_session": False},
            )
            session.commit()

        self._emit(NotificationEvent(scope, None, self.get_all(scope)))

    def notify(
        self,
        channel: NotificationChannel,
        amount: int = 1,
        scope: NotificationScope = NotificationScope.ADMIN,
    ) -> None:
        """Incrément sans propagation d'erreur, pour les effets de bord des écritures."""
        try:
            self.increment(channel, amount, scope)
        except Exception:
            log.exception("❌ Notification %s non enregistrée", channel.value)


_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    global _service
    if _service is None:
        from app.db.session import engine

        _service = NotificationService(engine)
    return _service
