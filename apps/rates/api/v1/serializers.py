"""
Serializers for the rates bounded context.
Transforms ORM models and domain rows into API payloads.
"""

from rest_framework import serializers

from apps.rates.infrastructure.persistence.models import (
    RATE_DECIMAL_PLACES,
    RATE_MAX_DIGITS,
    Currency,
)


class CurrencySerializer(serializers.ModelSerializer):
    class Meta:
        model = Currency
        fields = ["id", "code", "name", "created_at"]
        read_only_fields = fields


class RateRowSerializer(serializers.Serializer):
    base_code = serializers.CharField()
    target_code = serializers.CharField()
    target_name = serializers.CharField()
    rate = serializers.DecimalField(max_digits=RATE_MAX_DIGITS, decimal_places=RATE_DECIMAL_PLACES)
    updated_at = serializers.DateTimeField()


class ComparisonItemSerializer(serializers.Serializer):
    target_code = serializers.CharField()
    target_name = serializers.CharField(allow_null=True)
    rate = serializers.DecimalField(max_digits=RATE_MAX_DIGITS, decimal_places=RATE_DECIMAL_PLACES, allow_null=True)
    found = serializers.BooleanField()
