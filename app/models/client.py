from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class ClientBase(SQLModel):
    name: str = Field(index=True)
    phone: Optional[str] = None
    address: Optional[str] = None


class Client(ClientBase, table=True):
    __tablename__ = "client"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=now_utc)


class ClientCreate(ClientBase):
    pass


class ClientRead(ClientBase):
    id: int


class ClientUpdate(SQLModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
