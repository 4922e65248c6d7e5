"""Input validation for warehouse workflow operations."""
from decimal import Decimal

from rest_framework import serializers

from .exceptions import WorkflowValidationError
from .models import DispatchDriver, DispatchVehicle, ImageIssueReport

TC_NO_REGEX = r"^\d{11}$"


def normalize_plate(value: str) -> str:
    return "".join((value or "").split()).upper()


def run_validation(serializer: serializers.Serializer) -> serializers.Serializer:
    """Validate ``serializer`` or raise ``WorkflowValidationError`` with its errors."""
    if not serializer.is_valid():
        raise WorkflowValidationError(_first_error(serializer.errors), errors=serializer.errors)
    return serializer


def validate_payload(serializer_class, data, **kwargs) -> dict:
    serializer = run_validation(serializer_class(data=data if data is not None else {}, **kwargs))
    return dict(serializer.validated_data)


def _first_error(errors) -> str:
    if isinstance(errors, dict):
        for field, messages in errors.items():
            message = _first_error(messages)
            return message if field == "non_field_errors" else f"{field}: {message}"
    if isinstance(errors, (list, tuple)) and errors:
        return _first_error(errors[0])
    return str(errors) or "Geçersiz istek."


class PlateField(serializers.CharField):
    def to_internal_value(self, data):
        return normalize_plate(super().to_internal_value(data))


class ItemUpdateSerializer(serializers.Serializer):
    picked_qty = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=Decimal("0"), required=False)
    extra_qty = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=Decimal("0"), required=False)
    shelf_code = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("En az bir alan (picked_qty, extra_qty, shelf_code) gönderilmelidir.")
        return attrs


class DispatchSerializer(serializers.Serializer):
    delivery_series = serializers.CharField(max_length=20)
    driver_first_name = serializers.CharField(max_length=50)
    driver_last_name = serializers.CharField(max_length=50)
    driver_tc_no = serializers.RegexField(TC_NO_REGEX, error_messages={"invalid": "TC kimlik no 11 haneli olmalıdır."})
    vehicle_name = serializers.CharField(max_length=100)
    vehicle_plate = PlateField(max_length=20)


class DispatchDriverSerializer(serializers.ModelSerializer):
    tc_no = serializers.RegexField(TC_NO_REGEX, error_messages={"invalid": "TC kimlik no 11 haneli olmalıdır."})

    class Meta:
        model = DispatchDriver
        fields = ("id", "first_name", "last_name", "tc_no", "note", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class DispatchVehicleSerializer(serializers.ModelSerializer):
    plate = PlateField(max_length=20)

    class Meta:
        model = DispatchVehicle
        fields = ("id", "name", "plate", "note", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_plate(self, value):
        if not value:
            raise serializers.ValidationError("Plaka boş olamaz.")
        queryset = DispatchVehicle.objects.filter(plate=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("Bu plaka zaten kayıtlı.")
        return value


class ImageIssueReportSerializer(serializers.Serializer):
    order_number = serializers.CharField(max_length=64)
    line_key = serializers.CharField(max_length=100)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class ImageIssueListSerializer(serializers.Serializer):
    STATUS_CHOICES = ["ALL"] + [choice for choice, _ in ImageIssueReport.STATUS_CHOICES]

    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False, default="ALL")
    search = serializers.CharField(required=False, allow_blank=True, default="")
    page = serializers.IntegerField(required=False, default=1)
    limit = serializers.IntegerField(required=False, default=20)


class ImageIssueStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ImageIssueReport.STATUS_CHOICES)
    note = serializers.CharField(required=False, allow_blank=True, default="")
