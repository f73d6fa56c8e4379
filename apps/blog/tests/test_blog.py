import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from apps.blog.models import Article, ArticleRevision, Category, Comment
from apps.blog.services import create_article, update_article
from apps.users.models import User


@pytest.fixture
def editor(db):
    return User.objects.create_user(email="staff@example.com", password="StaffPass123", role=User.RoleChoices.STAFF)


@pytest.fixture
def reader(db):
    return User.objects.create_user(email="reader@example.com", password="ReaderPass123", first_name="Inès")


@pytest.fixture
def staff_client(editor):
    client = APIClient()
    client.force_authenticate(editor)
    return client


@pytest.fixture
def reader_client(reader):
    client = APIClient()
    client.force_authenticate(reader)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name="Télétravail")


@pytest.fixture
def article(editor, category):
    return create_article(
        author=editor,
        data={"title": "Bien choisir son espace", "content": "Un texte.", "category": category, "status": "published"},
    )


def test_slug_gets_numeric_suffix(editor):
    first = create_article(author=editor, data={"title": "Café & coworking", "content": "a"})
    second = create_article(author=editor, data={"title": "Café & coworking", "content": "b"})
    third = create_article(author=editor, data={"title": "Café & coworking", "content": "c"})

    assert first.slug == "cafe-coworking"
    assert second.slug == "cafe-coworking-1"
    assert third.slug == "cafe-coworking-2"


def test_reading_time():
    assert Article(content="<p>" + "mot " * 401 + "</p>").reading_time == 3
    assert Article(content="").reading_time == 1


def test_category_count_follows_publication(article, category, editor):
    category.refresh_from_db()
    assert category.article_count == 1
    assert article.published_at is not None

    update_article(article, editor=editor, data={"status": Article.Status.DRAFT})
    category.refresh_from_db()
    assert category.article_count == 0

    other = Category.objects.create(name="Événements")
    update_article(article, editor=editor, data={"status": Article.Status.PUBLISHED, "category": other})
    category.refresh_from_db()
    other.refresh_from_db()
    assert category.article_count == 0
    assert other.article_count == 1


def test_delete_is_soft_and_updates_count(staff_client, article, category):
    response = staff_client.delete(reverse("admin-article-detail", args=[article.pk]))

    assert response.status_code == 204
    article.refresh_from_db()
    assert article.is_deleted
    category.refresh_from_db()
    assert category.article_count == 0


def test_update_keeps_revisions_and_restore(staff_client, article):
    url = reverse("admin-article-detail", args=[article.pk])
    staff_client.patch(url, {"title": "Nouveau titre", "change_summary": "Titre"}, format="json")
    staff_client.patch(url, {"content": "Texte réécrit."}, format="json")

    revisions = staff_client.get(reverse("admin-article-revisions", args=[article.pk])).data

    assert [item["revision_number"] for item in revisions] == [2, 1]
    assert revisions[1]["title"] == "Bien choisir son espace"
    assert revisions[1]["change_summary"] == "Titre"
    article.refresh_from_db()
    assert article.slug == "nouveau-titre"

    first = ArticleRevision.objects.get(article=article, revision_number=1)
    response = staff_client.post(reverse("admin-article-restore", args=[article.pk, first.pk]))

    assert response.status_code == 200
    assert response.data["title"] == "Bien choisir son espace"
    assert response.data["content"] == "Un texte."
    assert ArticleRevision.objects.filter(article=article).count() == 3


def test_admin_articles_require_staff(reader_client):
    response = reader_client.post(reverse("admin-article-list"), {"title": "x", "content": "y"}, format="json")
    assert response.status_code == 403


def test_public_list_and_view_counter(article, editor):
    create_article(author=editor, data={"title": "Brouillon", "content": "..."})
    client = APIClient()

    listed = client.get(reverse("article-list")).data
    assert [item["slug"] for item in listed] == [article.slug]

    response = client.get(reverse("article-detail", args=[article.slug]))
    assert response.status_code == 200
    assert response.data["view_count"] == 1
    article.refresh_from_db()
    assert article.view_count == 1

    assert client.get(reverse("article-detail", args=["brouillon"])).status_code == 404


def test_like_is_idempotent(reader_client, article):
    url = reverse("article-like", args=[article.slug])

    reader_client.post(url)
    response = reader_client.post(url)
    assert response.data == {"liked": True, "like_count": 1}
    assert reader_client.get(reverse("article-liked", args=[article.slug])).data["liked"] is True

    response = reader_client.delete(url)
    assert response.data == {"liked": False, "like_count": 0}
    reader_client.delete(url)
    article.refresh_from_db()
    assert article.like_count == 0


def test_anonymous_cannot_like(article):
    assert APIClient().post(reverse("article-like", args=[article.slug])).status_code == 401


def test_comment_moderation_flow(reader_client, staff_client, article):
    comments_url = reverse("article-comments", args=[article.slug])

    response = reader_client.post(comments_url, {"content": "Très utile !"}, format="json")
    assert response.status_code == 201
    assert response.data["status"] == Comment.Status.PENDING
    assert reader_client.get(comments_url).data == []

    comment_id = response.data["id"]
    staff_client.post(reverse("admin-comment-moderate", args=[comment_id]), {"status": "approved"}, format="json")
    article.refresh_from_db()
    assert article.comment_count == 1

    reply = reader_client.post(comments_url, {"content": "Merci", "parent": comment_id}, format="json")
    staff_client.post(reverse("admin-comment-moderate", args=[reply.data["id"]]), {"status": "approved"}, format="json")

    thread = reader_client.get(comments_url).data
    assert len(thread) == 1
    assert thread[0]["author"] == "Inès"
    assert [item["content"] for item in thread[0]["replies"]] == ["Merci"]
    article.refresh_from_db()
    assert article.comment_count == 2

    staff_client.post(reverse("admin-comment-moderate", args=[comment_id]), {"status": "spam"}, format="json")
    article.refresh_from_db()
    assert article.comment_count == 1


def test_reply_must_target_same_article(reader, reader_client, article, editor):
    other = create_article(author=editor, data={"title": "Autre", "content": "...", "status": "published"})
    foreign = Comment.objects.create(article=other, user=reader, content="Ailleurs", status=Comment.Status.APPROVED)

    response = reader_client.post(
        reverse("article-comments", args=[article.slug]), {"content": "Réponse", "parent": foreign.pk}, format="json"
    )

    assert response.status_code == 400


def test_categories_public_read_staff_write(reader_client, staff_client, category):
    assert APIClient().get(reverse("category-list")).status_code == 200
    assert reader_client.post(reverse("category-list"), {"name": "Actus"}, format="json").status_code == 403

    response = staff_client.post(reverse("category-list"), {"name": "Actualités", "color": "#FF8800"}, format="json")

    assert response.status_code == 201
    assert response.data["slug"] == "actualites"
    assert response.data["article_count"] == 0
