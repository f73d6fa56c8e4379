"""URL declarations for the users app."""

from __future__ import annotations

from django.urls import path, include  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import NewsletterAdminViewSet, NewsletterView, UserViewSet

router = DefaultRouter()
router.register(r'newsletter/subscribers', NewsletterAdminViewSet, basename='newsletter-subscriber')
router.register(r'', UserViewSet, basename='user')

urlpatterns = [
    path('newsletter/', NewsletterView.as_view(), name='newsletter'),
    path('', include(router.urls)),
]
