from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ApplyDiscountView, CurrentPromoView, PromoAdminViewSet, PromoEventView, PromoTokenView

router = DefaultRouter()
router.register(r"codes", PromoAdminViewSet, basename="promo-code")

urlpatterns = [
    path("current/", CurrentPromoView.as_view(), name="promo-current"),
    path("apply/", ApplyDiscountView.as_view(), name="promo-apply"),
    path("t/<str:token>/", PromoTokenView.as_view(), name="promo-token"),
    path("t/<str:token>/events/", PromoEventView.as_view(), name="promo-event"),
    path("", include(router.urls)),
]
