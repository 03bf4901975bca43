from __future__ import annotations

from rest_framework import serializers

from .models import PayeeMatchingRule, Transaction
from .payee_matching import is_valid_regex


class TransactionSerializer(serializers.ModelSerializer):
    Key = serializers.UUIDField(source="key", read_only=True)
    Date = serializers.DateField(source="date")
    Amount = serializers.DecimalField(source="amount", max_digits=19, decimal_places=2)
    Payee = serializers.CharField(source="payee")
    Memo = serializers.CharField(source="memo", allow_blank=True)
    Source = serializers.CharField(source="source", allow_blank=True)
    ExternalId = serializers.CharField(source="external_id", allow_null=True)
    Category = serializers.CharField(source="category", allow_blank=True)

    class Meta:
        model = Transaction
        fields = ["Key", "Date", "Amount", "Payee", "Memo", "Source", "ExternalId", "Category"]
        read_only_fields = fields


class PayeeMatchingRuleSerializer(serializers.ModelSerializer):
    Key = serializers.UUIDField(source="key", read_only=True)
    PayeePattern = serializers.CharField(source="payee_pattern", max_length=200)
    PayeeIsRegex = serializers.BooleanField(source="payee_is_regex", default=False)
    Category = serializers.CharField(source="category", max_length=200)
    CreatedAt = serializers.DateTimeField(source="created_at", read_only=True)
    ModifiedAt = serializers.DateTimeField(source="modified_at", read_only=True)
    LastUsedAt = serializers.DateTimeField(source="last_used_at", read_only=True)
    MatchCount = serializers.IntegerField(source="match_count", read_only=True)

    class Meta:
        model = PayeeMatchingRule
        fields = [
            "Key",
            "PayeePattern",
            "PayeeIsRegex",
            "Category",
            "CreatedAt",
            "ModifiedAt",
            "LastUsedAt",
            "MatchCount",
        ]

    def validate(self, attrs):
        pattern = (attrs.get("payee_pattern") or "").strip()
        if not pattern:
            raise serializers.ValidationError({"PayeePattern": ["Payee pattern cannot be blank."]})
        if attrs.get("payee_is_regex") and not is_valid_regex(pattern):
            raise serializers.ValidationError({"PayeePattern": ["Payee pattern is not a valid regular expression."]})
        if not (attrs.get("category") or "").strip():
            raise serializers.ValidationError({"Category": ["Category cannot be blank."]})
        attrs["payee_pattern"] = pattern
        attrs["category"] = attrs["category"].strip()
        return attrs
