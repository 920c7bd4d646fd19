from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class NotificationCounter(SQLModel, table=True):
    __tablename__ = "notification_counter"
    __table_args__ = (UniqueConstraint("scope", "channel"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    scope: str = Field(index=True)      # ADMIN | GESTIONNAIRE | GLOBAL
    channel: str                        # ex: admin.commandes
    count: int = 0
