"""
Spaces Serializers

Validates request parameters for the search, availability and booking
hold endpoints, and shapes booking responses.
"""

from rest_framework import serializers

from core.exceptions import ValidationError

from .models import Booking
from .query_sanitizer import DEFAULT_AUTOCOMPLETE_LIMIT, MAX_AUTOCOMPLETE_LIMIT
from .services.query_parser import MAX_QUERY_LENGTH

SPACE_ID_REGEX = r"^(site|shop|asset)-\d+$"


def validated(serializer_class, data) -> dict:
    """
    Run a serializer and return its validated data.

    Raises:
        ValidationError: first failing field, with every field error in ``detail``
    """
    serializer = serializer_class(data=data)
    if serializer.is_valid():
        return serializer.validated_data
    field, messages = next(iter(serializer.errors.items()))
    message = messages[0] if isinstance(messages, list) and messages else str(messages)
    raise ValidationError(
        str(message),
        field=None if field == "non_field_errors" else field,
        errors={k: [str(m) for m in v] for k, v in serializer.errors.items()},
    )


class DateRangeMixin:
    start_field = "start"
    end_field = "end"

    def validate(self, attrs):
        start = attrs.get(self.start_field)
        end = attrs.get(self.end_field)
        if start and end and end < start:
            raise serializers.ValidationError({self.end_field: f"{self.end_field} must not be before {self.start_field}"})
        return attrs


class SearchParamsSerializer(serializers.Serializer):
    """``GET search/?q=&date=``"""
    q = serializers.CharField(required=False, allow_blank=True, default="", max_length=MAX_QUERY_LENGTH * 2, trim_whitespace=True)
    date = serializers.DateField(required=False, allow_null=True, default=None)


class AutocompleteParamsSerializer(serializers.Serializer):
    """``GET autocomplete/?q=&limit=``"""
    q = serializers.CharField(required=False, allow_blank=True, default="", max_length=MAX_QUERY_LENGTH * 2)
    limit = serializers.IntegerField(
        required=False, default=DEFAULT_AUTOCOMPLETE_LIMIT, min_value=1, max_value=MAX_AUTOCOMPLETE_LIMIT
    )


class AvailabilityParamsSerializer(DateRangeMixin, serializers.Serializer):
    """``GET spaces/<space_id>/availability/?start=&end=&exclude_booking=``"""
    start = serializers.DateField()
    end = serializers.DateField()
    exclude_booking = serializers.CharField(required=False, allow_blank=True, default="")


class BookingHoldSerializer(DateRangeMixin, serializers.Serializer):
    """``POST bookings/hold/``"""
    start_field = "start_date"
    end_field = "end_date"

    space_id = serializers.RegexField(SPACE_ID_REGEX, max_length=30)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")


class BookingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Booking
        fields = ["id", "booking_number", "space_id", "start_date", "end_date", "status", "created_at"]
        read_only_fields = fields
