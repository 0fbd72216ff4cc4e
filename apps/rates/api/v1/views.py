"""
ViewSets for the rates API v1.
Cached currencies plus freshness-gated rate queries per base currency.
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.rates.api.v1.serializers import (
    ComparisonItemSerializer,
    CurrencySerializer,
    RateRowSerializer,
)
from apps.rates.domain.services import ExchangeRateService, parse_threshold
from apps.rates.infrastructure.persistence.models import Currency


@extend_schema(tags=['Currencies'])
class CurrencyViewSet(viewsets.ReadOnlyModelViewSet):

    queryset = Currency.objects.all()
    serializer_class = CurrencySerializer


@extend_schema(tags=['Rates'])
class LatestRatesViewSet(viewsets.ViewSet):
    """
    Rates for one base currency, served from the cache while it is fresh
    and refetched from the upstream API otherwise.
    """

    lookup_field = 'base_code'

    @extend_schema(
        responses=RateRowSerializer(many=True),
        description="Current exchange rates for a base currency (e.g. PLN)"
    )
    def retrieve(self, request, base_code=None):
        base_code = base_code.upper()

        with ExchangeRateService() as service:
            rows = service.get_current_rates(base_code)

        if not rows:
            return Response(
                {"error": f"No exchange rate data available for {base_code}"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response({
            "base_code": base_code,
            "last_update": max(row.updated_at for row in rows),
            "rates": RateRowSerializer(rows, many=True).data,
        })

    @extend_schema(
        parameters=[
            OpenApiParameter("targets", OpenApiTypes.STR, required=True, description="Comma-separated target codes (e.g. USD,EUR,GBP)"),
        ],
        responses=ComparisonItemSerializer(many=True),
        description="Compare selected target currencies against the base currency"
    )
    @action(detail=True, methods=['get'], url_path='compare')
    def compare(self, request, base_code=None):
        """
        Compare target currencies.

        Query params:
        - targets: comma-separated currency codes (required)

        Targets without a rate are reported with found=false.
        """
        base_code = base_code.upper()
        targets = [t.strip() for t in request.query_params.get('targets', '').split(',') if t.strip()]

        if not targets:
            return Response(
                {"error": "targets is required"},
                status=status.HTTP_400_BAD_REQUEST
            )

        with ExchangeRateService() as service:
            items = service.compare(base_code, targets)

        return Response({
            "base_code": base_code,
            "results": ComparisonItemSerializer(items, many=True).data,
        })

    @extend_schema(
        parameters=[
            OpenApiParameter("threshold", OpenApiTypes.DECIMAL, required=True, description="Only rates strictly above this value"),
        ],
        responses=RateRowSerializer(many=True),
        description="Target currencies whose rate exceeds a threshold, highest rate first"
    )
    @action(detail=True, methods=['get'], url_path='above')
    def above(self, request, base_code=None):
        base_code = base_code.upper()
        threshold_str = request.query_params.get('threshold')

        if not threshold_str:
            return Response(
                {"error": "threshold is required"},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            threshold = parse_threshold(threshold_str)
        except ValueError as e:
            return Response(
                {"error": str(e)},
                status=status.HTTP_400_BAD_REQUEST
            )

        with ExchangeRateService() as service:
            rows = service.rates_above(base_code, threshold)

        return Response({
            "base_code": base_code,
            "threshold": str(threshold),
            "rates": RateRowSerializer(rows, many=True).data,
        })
