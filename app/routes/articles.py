from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.db.session import get_session
from app.models import Article, ArticleCreate, ArticleRead, ArticleUpdate, OrderLine
from app.models.article import now_utc

router = APIRouter(
    prefix="/articles",
    tags=["articles"],
)

SessionDep = Depends(get_session)

# colonnes NOT NULL: un null explicite dans un PUT est refusé
REQUIRED_FIELDS = ("reference", "designation", "unit_price", "stock_quantity")


@router.get(
    "",
    response_model=List[ArticleRead],
    summary="Lister tous les articles",
)
def list_articles(
    session: Session = SessionDep,
) -> List[ArticleRead]:
    """Retourne le catalogue complet, trié par référence."""
    return session.exec(select(Article).order_by(Article.reference)).all()


@router.get(
    "/{article_id}",
    response_model=ArticleRead,
    summary="Récupérer un article",
)
def get_article(
    article_id: int,
    session: Session = SessionDep,
) -> ArticleRead:
    article = session.get(Article, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article introuvable")
    return article


@router.post(
    "",
    response_model=ArticleRead,
    status_code=201,
    summary="Créer un article",
)
def create_article(
    payload: ArticleCreate,
    session: Session = SessionDep,
) -> ArticleRead:
    article = Article.model_validate(payload)
    session.add(article)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Référence déjà utilisée: {payload.reference}")
    session.refresh(article)
    return article


@router.put(
    "/{article_id}",
    response_model=ArticleRead,
    summary="Mettre à jour un article",
)
def update_article(
    article_id: int,
    payload: ArticleUpdate,
    session: Session = SessionDep,
) -> ArticleRead:
    article = session.get(Article, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article introuvable")

    data = payload.model_dump(exclude_unset=True)
    missing = [key for key in REQUIRED_FIELDS if key in data and data[key] is None]
    if missing:
        raise HTTPException(status_code=422, detail=f"Champ(s) obligatoire(s): {', '.join(missing)}")

    for key, value in data.items():
        setattr(article, key, value)

    article.updated_at = now_utc()
    session.add(article)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Référence déjà utilisée")
    session.refresh(article)
    return article


@router.delete(
    "/{article_id}",
    status_code=204,
    summary="Supprimer un article",
)
def delete_article(
    article_id: int,
    session: Session = SessionDep,
) -> None:
    article = session.get(Article, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article introuvable")

    used = session.exec(select(OrderLine.id).where(OrderLine.article_id == article_id)).first()
    if used is not None:
        raise HTTPException(status_code=409, detail="Article présent dans des commandes")

    session.delete(article)
    session.commit()
