"""Blog write paths.

Counters stored on ``Category`` and ``Article`` are recomputed from the
rows they summarize each time one of those rows changes, so they never
drift from the real number of published articles, approved comments or
likes.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import F, Max  # type: ignore
from django.utils import timezone  # type: ignore

from apps.users.models import CustomUser

from .models import Article, ArticleLike, ArticleRevision, Category, Comment, unique_slug

logger = logging.getLogger(__name__)

ARTICLE_FIELDS = (
    "title",
    "content",
    "excerpt",
    "featured_image",
    "category",
    "status",
    "meta_title",
    "meta_description",
    "meta_keywords",
)


class BlogError(Exception):
    status_code = 400


def refresh_category_count(category: Category | None) -> None:
    if category is None:
        return
    count = category.articles.filter(status=Article.Status.PUBLISHED, is_deleted=False).count()
    Category.objects.filter(pk=category.pk).update(article_count=count)


def refresh_comment_count(article: Article) -> None:
    count = article.comments.filter(status=Comment.Status.APPROVED).count()
    Article.objects.filter(pk=article.pk).update(comment_count=count)
    article.comment_count = count


def refresh_like_count(article: Article) -> None:
    count = article.likes.count()
    Article.objects.filter(pk=article.pk).update(like_count=count)
    article.like_count = count


def _apply_status(article: Article) -> None:
    if article.status == Article.Status.PUBLISHED and article.published_at is None:
        article.published_at = timezone.now()


@transaction.atomic
def create_article(*, author: CustomUser, data: dict) -> Article:
    article = Article(author=author, **{key: value for key, value in data.items() if key in ARTICLE_FIELDS})
    article.slug = unique_slug(Article, article.title)
    _apply_status(article)
    article.save()
    refresh_category_count(article.category)
    logger.info(f"Article {article.pk} created by {author.pk} ({article.status})")
    return article


def _snapshot(article: Article, editor: CustomUser | None, summary: str) -> ArticleRevision:
    last = article.revisions.aggregate(last=Max("revision_number"))["last"] or 0
    return ArticleRevision.objects.create(
        article=article,
        revision_number=last + 1,
        title=article.title,
        content=article.content,
        excerpt=article.excerpt,
        edited_by=editor,
        change_summary=summary,
    )


@transaction.atomic
def update_article(article: Article, *, editor: CustomUser, data: dict, change_summary: str = "") -> Article:
    """Apply ``data``, keeping the previous text as a new revision."""
    _snapshot(article, editor, change_summary or "Article mis à jour")
    previous_category = article.category

    title_changed = "title" in data and data["title"] != article.title
    for key, value in data.items():
        if key in ARTICLE_FIELDS:
            setattr(article, key, value)
    if title_changed:
        article.slug = unique_slug(Article, article.title, instance_pk=article.pk)
    _apply_status(article)
    article.save()

    refresh_category_count(article.category)
    if previous_category and previous_category != article.category:
        refresh_category_count(previous_category)
    return article


@transaction.atomic
def restore_revision(article: Article, revision: ArticleRevision, *, editor: CustomUser) -> Article:
    if revision.article_id != article.pk:
        raise BlogError("Cette révision n'appartient pas à l'article.")
    _snapshot(article, editor, f"Avant restauration de la révision {revision.revision_number}")
    article.title = revision.title
    article.content = revision.content
    article.excerpt = revision.excerpt
    article.save(update_fields=["title", "content", "excerpt", "updated_at"])
    logger.info(f"Article {article.pk} restored to revision {revision.revision_number}")
    return article


@transaction.atomic
def delete_article(article: Article) -> None:
    article.is_deleted = True
    article.save(update_fields=["is_deleted", "updated_at"])
    refresh_category_count(article.category)


def record_view(article: Article) -> None:
    Article.objects.filter(pk=article.pk).update(view_count=F("view_count") + 1)
    article.view_count += 1


def like_article(article: Article, user: CustomUser) -> Article:
    try:
        with transaction.atomic():
            ArticleLike.objects.get_or_create(article=article, user=user)
    except IntegrityError:
        # concurrent double click
        pass
    refresh_like_count(article)
    return article


def unlike_article(article: Article, user: CustomUser) -> Article:
    ArticleLike.objects.filter(article=article, user=user).delete()
    refresh_like_count(article)
    return article


def add_comment(article: Article, *, user: CustomUser, content: str, parent: Comment | None = None) -> Comment:
    if not article.is_published:
        raise BlogError("Impossible de commenter cet article.")
    if parent is not None:
        if parent.article_id != article.pk:
            raise BlogError("Le commentaire parent appartient à un autre article.")
        if parent.status != Comment.Status.APPROVED:
            raise BlogError("Impossible de répondre à ce commentaire.")
    comment = Comment.objects.create(article=article, user=user, content=content.strip(), parent=parent)
    logger.info(f"Comment {comment.pk} awaiting moderation on article {article.pk}")
    return comment


@transaction.atomic
def moderate_comment(comment: Comment, status: str) -> Comment:
    if status not in Comment.Status.values:
        raise BlogError("Statut de modération inconnu.")
    comment.status = status
    comment.save(update_fields=["status", "updated_at"])
    refresh_comment_count(comment.article)
    return comment


@transaction.atomic
def delete_comment(comment: Comment) -> None:
    article = comment.article
    comment.delete()
    refresh_comment_count(article)
