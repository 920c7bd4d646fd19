from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.db.session import get_session
from app.models import AvatarUpdate, Profile, ProfileRead, ProfileUpdate

router = APIRouter(
    prefix="/users",
    tags=["users"],
)

SessionDep = Depends(get_session)


def _get_profile(session: Session, user_id: str) -> Profile:
    profile = session.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Utilisateur introuvable")
    return profile


@router.get(
    "",
    response_model=List[ProfileRead],
    summary="Lister les utilisateurs",
)
def list_users(
    session: Session = SessionDep,
) -> List[ProfileRead]:
    """
    Profils applicatifs, plus récents d'abord.
    La création de comptes reste côté fournisseur d'authentification.
    """
    return session.exec(select(Profile).order_by(Profile.created_at.desc())).all()


@router.get(
    "/{user_id}",
    response_model=ProfileRead,
    summary="Récupérer un utilisateur",
)
def get_user(
    user_id: str,
    session: Session = SessionDep,
) -> ProfileRead:
    return _get_profile(session, user_id)


@router.put(
    "/{user_id}",
    response_model=ProfileRead,
    summary="Modifier nom et rôle",
)
def update_user(
    user_id: str,
    payload: ProfileUpdate,
    session: Session = SessionDep,
) -> ProfileRead:
    profile = _get_profile(session, user_id)

    data = payload.model_dump(exclude_unset=True)
    if data.get("role") is not None:
        data["role"] = data["role"].value
    for key, value in data.items():
        setattr(profile, key, value)

    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@router.put(
    "/{user_id}/avatar",
    response_model=ProfileRead,
    summary="Changer (ou retirer) l'avatar",
)
def update_avatar(
    user_id: str,
    payload: AvatarUpdate,
    session: Session = SessionDep,
) -> ProfileRead:
    profile = _get_profile(session, user_id)
    profile.avatar_url = payload.avatar_url
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@router.delete(
    "/{user_id}",
    status_code=204,
    summary="Supprimer un profil",
)
def delete_user(
    user_id: str,
    session: Session = SessionDep,
) -> None:
    profile = _get_profile(session, user_id)
    session.delete(profile)
    session.commit()
