from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    ADMIN = "ADMIN"
    GESTIONNAIRE = "GESTIONNAIRE"


class Profile(SQLModel, table=True):
    """Profil applicatif; l'identifiant vient du fournisseur d'authentification."""
    __tablename__ = "profile"

    id: str = Field(primary_key=True)
    email: Optional[str] = Field(default=None, index=True)
    full_name: Optional[str] = None
    role: str = Field(default=Role.GESTIONNAIRE.value)
    avatar_url: Optional[str] = None

    created_at: datetime = Field(default_factory=now_utc)


class ProfileRead(SQLModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    avatar_url: Optional[str] = None
    created_at: datetime


class ProfileUpdate(SQLModel):
    full_name: Optional[str] = None
    role: Optional[Role] = None


class AvatarUpdate(SQLModel):
    avatar_url: Optional[str] = None
