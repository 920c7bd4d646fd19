from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from app.services.notifications import (
    CHANNEL_LABELS,
    NotificationChannel,
    NotificationScope,
    NotificationService,
    get_notification_service,
    scope_for_role,
)

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)

NotifierDep = Depends(get_notification_service)


def _scope(role: Optional[str] = Query(None, description="Rôle de l'utilisateur (ADMIN, GESTIONNAIRE)")) -> NotificationScope:
    return scope_for_role(role)


ScopeDep = Depends(_scope)


@router.get("", summary="Compteurs de notifications du rôle")
def get_notifications(
    scope: NotificationScope = ScopeDep,
    notifier: NotificationService = NotifierDep,
) -> Dict[str, Any]:
    counts = notifier.get_all(scope)
    items = [
        {"key": channel.value, "label": label, "count": counts.get(channel.value, 0)}
        for channel, label in CHANNEL_LABELS.items()
        if counts.get(channel.value, 0) > 0
    ]
    return {
        "scope": scope.value,
        "counts": counts,
        "total": notifier.total(scope),
        "items": items,
    }


@router.post("/{channel}/increment", summary="Incrémenter un canal")
def increment_notification(
    channel: NotificationChannel,
    amount: int = Query(1, ge=1),
    scope: NotificationScope = ScopeDep,
    notifier: NotificationService = NotifierDep,
) -> Dict[str, Any]:
    value = notifier.increment(channel, amount, scope)
    return {"ok": True, "channel": channel.value, "count": value}


@router.delete("/{channel}", summary="Remettre un canal à zéro")
def clear_notification(
    channel: NotificationChannel,
    scope: NotificationScope = ScopeDep,
    notifier: NotificationService = NotifierDep,
) -> Dict[str, Any]:
    notifier.clear(channel, scope)
    return {"ok": True, "channel": channel.value}


@router.delete("", summary="Tout remettre à zéro")
def clear_all_notifications(
    scope: NotificationScope = ScopeDep,
    notifier: NotificationService = NotifierDep,
) -> Dict[str, Any]:
    notifier.clear_all(scope)
    return {"ok": True, "scope": scope.value}
