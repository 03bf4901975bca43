from __future__ import annotations

from rest_framework import serializers


class ReviewItemSerializer(serializers.Serializer):
    """Read-only view of `services.ReviewItem`."""

    Key = serializers.UUIDField(source="key")
    Date = serializers.DateField(source="date")
    Payee = serializers.CharField(source="payee")
    Category = serializers.CharField(source="category", allow_blank=True)
    Amount = serializers.DecimalField(source="amount", max_digits=19, decimal_places=2)
    DuplicateStatus = serializers.CharField(source="duplicate_status")
    DuplicateOfKey = serializers.UUIDField(source="duplicate_of_key", allow_null=True)
    IsSelected = serializers.BooleanField(source="is_selected")


class CompleteReviewSerializer(serializers.Serializer):
    Keys = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        error_messages={
            "required": "At least one transaction key is required.",
            "null": "At least one transaction key is required.",
            "empty": "At least one transaction key is required.",
        },
    )

    @classmethod
    def from_request_data(cls, data):
        """The body is a bare JSON array of keys; `{"Keys": [...]}` is accepted too."""
        if isinstance(data, (list, tuple)) or data is None:
            data = {"Keys": data}
        return cls(data=data)


class SelectionSerializer(serializers.Serializer):
    Keys = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)
    IsSelected = serializers.BooleanField()
