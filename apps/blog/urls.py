"""URL routing for the blog."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AdminArticleViewSet, AdminCommentViewSet, ArticleViewSet, CategoryViewSet

router = DefaultRouter()
router.register(r"admin/articles", AdminArticleViewSet, basename="admin-article")
router.register(r"admin/comments", AdminCommentViewSet, basename="admin-comment")
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"articles", ArticleViewSet, basename="article")

urlpatterns = [
    path("", include(router.urls)),
]
