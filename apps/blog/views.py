"""Blog API: public reading, likes and comments; editorial back office for the team."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsStaffRole

from .models import Article, ArticleLike, ArticleRevision, Category, Comment
from .serializers import (
    AdminCommentSerializer,
    ArticleDetailSerializer,
    ArticleListSerializer,
    ArticleRevisionSerializer,
    ArticleWriteSerializer,
    CategorySerializer,
    CommentCreateSerializer,
    CommentSerializer,
    ModerationSerializer,
)
from .services import (
    BlogError,
    add_comment,
    create_article,
    delete_article,
    delete_comment,
    like_article,
    moderate_comment,
    record_view,
    restore_revision,
    unlike_article,
    update_article,
)


def blog_error_response(exc: BlogError) -> Response:
    return Response({"detail": str(exc)}, status=exc.status_code)


class CategoryViewSet(viewsets.ModelViewSet):
    serializer_class = CategorySerializer
    queryset = Category.objects.all()
    lookup_field = "slug"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action in ("list", "retrieve"):
            return [permissions.AllowAny()]
        return [IsStaffRole()]


class ArticleViewSet(viewsets.ReadOnlyModelViewSet):
    """Articles publiés, consultés par slug.

    - `like` : POST pour aimer, DELETE pour retirer (idempotent)
    - `liked` : le visiteur connecté a-t-il aimé l'article
    - `comments` : GET les commentaires approuvés, POST pour commenter
    """

    lookup_field = "slug"
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]
    filterset_fields = ["category__slug"]

    def get_queryset(self):  # type: ignore
        qs = Article.objects.filter(status=Article.Status.PUBLISHED, is_deleted=False).select_related(
            "category", "author"
        )
        search = self.request.query_params.get("search")
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(excerpt__icontains=search))
        return qs

    def get_serializer_class(self):  # type: ignore
        return ArticleDetailSerializer if self.action == "retrieve" else ArticleListSerializer

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        article: Article = self.get_object()  # type: ignore
        record_view(article)
        return Response(ArticleDetailSerializer(article).data)

    @action(detail=True, methods=["post", "delete"], permission_classes=[permissions.IsAuthenticated])
    def like(self, request, slug=None):  # type: ignore
        article: Article = self.get_object()  # type: ignore
        if request.method == "DELETE":
            unlike_article(article, request.user)
            liked = False
        else:
            like_article(article, request.user)
            liked = True
        return Response({"liked": liked, "like_count": article.like_count})

    @action(detail=True, methods=["get"], permission_classes=[permissions.IsAuthenticated])
    def liked(self, request, slug=None):  # type: ignore
        article: Article = self.get_object()  # type: ignore
        liked = ArticleLike.objects.filter(article=article, user=request.user).exists()
        return Response({"liked": liked, "like_count": article.like_count})

    @action(detail=True, methods=["get", "post"])
    def comments(self, request, slug=None):  # type: ignore
        article: Article = self.get_object()  # type: ignore
        if request.method == "GET":
            roots = article.comments.filter(status=Comment.Status.APPROVED, parent__isnull=True).select_related("user")
            return Response(CommentSerializer(roots, many=True).data)

        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            comment = add_comment(
                article,
                user=request.user,
                content=serializer.validated_data["content"],
                parent=serializer.validated_data.get("parent"),
            )
        except BlogError as exc:
            return blog_error_response(exc)
        return Response(
            {**CommentSerializer(comment).data, "detail": "Votre commentaire est en attente de modération."},
            status=status.HTTP_201_CREATED,
        )


class AdminArticleViewSet(viewsets.ModelViewSet):
    permission_classes = [IsStaffRole]
    filterset_fields = ["status", "category"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        return Article.objects.filter(is_deleted=False).select_related("category", "author")

    def get_serializer_class(self):  # type: ignore
        if self.action in ("create", "partial_update"):
            return ArticleWriteSerializer
        return ArticleDetailSerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ArticleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop("change_summary", None)
        article = create_article(author=request.user, data=data)
        return Response(ArticleDetailSerializer(article).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):  # type: ignore
        article: Article = self.get_object()  # type: ignore
        serializer = ArticleWriteSerializer(article, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        summary = data.pop("change_summary", "")
        article = update_article(article, editor=request.user, data=data, change_summary=summary)
        return Response(ArticleDetailSerializer(article).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        delete_article(self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def revisions(self, request, pk=None):  # type: ignore
        article: Article = self.get_object()  # type: ignore
        return Response(ArticleRevisionSerializer(article.revisions.select_related("edited_by"), many=True).data)

    @action(detail=True, methods=["post"], url_path=r"revisions/(?P<revision_id>\d+)/restore")
    def restore(self, request, pk=None, revision_id=None):  # type: ignore
        article: Article = self.get_object()  # type: ignore
        revision = get_object_or_404(ArticleRevision, pk=revision_id, article=article)
        try:
            article = restore_revision(article, revision, editor=request.user)
        except BlogError as exc:
            return blog_error_response(exc)
        return Response(ArticleDetailSerializer(article).data)


class AdminCommentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = AdminCommentSerializer
    permission_classes = [IsStaffRole]
    filterset_fields = ["status", "article"]
    queryset = Comment.objects.select_related("user", "article").order_by("-created_at")

    def perform_destroy(self, instance: Comment):  # type: ignore
        delete_comment(instance)

    @action(detail=True, methods=["post"])
    def moderate(self, request, pk=None):  # type: ignore
        serializer = ModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            comment = moderate_comment(self.get_object(), serializer.validated_data["status"])
        except BlogError as exc:
            return blog_error_response(exc)
        return Response(AdminCommentSerializer(comment).data)
