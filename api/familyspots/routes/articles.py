from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session, select
from typing import Optional
from ..models import Article, ArticleCategory
from ..schemas.article import ArticleRead, ArticleSummary
from ..schemas.common import DataResponse, PageResponse, build_pagination, clamp_per_page, page_offset
from ..database import get_session
from ..errors import NotFound
from ..services.views import increment_view_count

router = APIRouter()

MAX_ARTICLES_PER_PAGE = 50


@router.get("/", response_model=PageResponse[ArticleSummary])
def get_articles(
    category: Optional[ArticleCategory] = None,
    featured: bool = False,
    tag: Optional[str] = None,
    page: int = 1,
    per_page: int = 12,
    db: Session = Depends(get_session)
):
    per_page = clamp_per_page(per_page, MAX_ARTICLES_PER_PAGE)

    query = select(Article).where(Article.is_published == True)  # noqa: E712
    if category:
        query = query.where(Article.category == category)
    if featured:
        query = query.where(Article.is_featured == True)  # noqa: E712
    query = query.order_by(Article.published_at.desc(), Article.id.desc())

    articles = db.exec(query).all()
    # Tags live in a JSON list, matched here rather than per dialect
    if tag:
        articles = [article for article in articles if tag in (article.tags or [])]

    start = page_offset(page, per_page)
    return {
        "data": [ArticleSummary.model_validate(article) for article in articles[start:start + per_page]],
        "pagination": build_pagination(page, per_page, len(articles)),
    }


@router.get("/{slug}", response_model=DataResponse[ArticleRead])
def get_article(
    slug: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_session)
):
    article = db.exec(
        select(Article)
        .where(Article.slug == slug)
        .where(Article.is_published == True)  # noqa: E712
    ).first()
    if not article:
        raise NotFound("Article not found")

    background_tasks.add_task(increment_view_count, Article, article.id)
    return {"data": ArticleRead.model_validate(article)}
