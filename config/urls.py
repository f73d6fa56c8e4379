"""URL configuration for the CoworKing Café API.

The `urlpatterns` list routes URLs to views. It includes both Django admin
and application-level routers provided by Django Rest Framework and each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView  # type: ignore

from apps.bookings.urls import cron_urlpatterns

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    # Application URLs
    path('api/v1/auth/', include(('apps.users.auth_urls', 'auth'), namespace='auth')),
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/spaces/', include('apps.spaces.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/payments/', include('apps.payments.urls')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
    path('api/v1/hr/', include('apps.hr.urls')),
    path('api/v1/blog/', include('apps.blog.urls')),
    path('api/v1/contact/', include('apps.contact.urls')),
    path('api/v1/promo/', include('apps.promo.urls')),
    path('api/v1/accounting/', include('apps.accounting.urls')),
    path('api/v1/catalog/', include('apps.catalog.urls')),
    # Scheduled jobs triggered over HTTP
    path('api/v1/cron/', include(cron_urlpatterns)),
]
