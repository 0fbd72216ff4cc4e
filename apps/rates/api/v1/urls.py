from django.urls import path, include
from rest_framework.routers import DefaultRouter

from apps.rates.api.v1.views import (
    CurrencyViewSet,
    LatestRatesViewSet,
)

router = DefaultRouter()
router.register(r'currencies', CurrencyViewSet, basename='currency')
router.register(r'latest', LatestRatesViewSet, basename='latest-rates')

urlpatterns = [
    path('', include(router.urls)),
]
