from .article import Article, ArticleCreate, ArticleRead, ArticleUpdate, StockRead
from .client import Client, ClientCreate, ClientRead, ClientUpdate
from .order import (
    Order, OrderLine, OrderStatus, OrderCreate, OrderLineIn, OrderRead,
    OrderLineRead, OrderPage, OrderStatusUpdate, DraftRead, DraftLineRead,
)
from .document import Document, DocumentCreate, DocumentGenerate, DocumentRead, DocumentType, DocumentUpdate
from .profile import Profile, ProfileRead, ProfileUpdate, AvatarUpdate, Role
from .notification import NotificationCounter

__all__ = [
    "Article", "ArticleCreate", "ArticleRead", "ArticleUpdate", "StockRead",
    "Client", "ClientCreate", "ClientRead", "ClientUpdate",
    "Order", "OrderLine", "OrderStatus", "OrderCreate", "OrderLineIn", "OrderRead",
    "OrderLineRead", "OrderPage", "OrderStatusUpdate", "DraftRead", "DraftLineRead",
    "Document", "DocumentCreate", "DocumentGenerate", "DocumentRead", "DocumentType", "DocumentUpdate",
    "Profile", "ProfileRead", "ProfileUpdate", "AvatarUpdate", "Role",
    "NotificationCounter",
]
